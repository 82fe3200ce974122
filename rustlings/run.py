"""Running a single exercise and resetting it."""

from __future__ import annotations

import subprocess

from rich.console import Console

from rustlings import ui
from rustlings.exercise import CompilationError, Exercise, Mode, RunError
from rustlings.verify import ExerciseFailed, test


def run(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run (or test) an exercise; raise ExerciseFailed on failure."""
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            test(exercise, verbose)
        case Mode.COMPILE | Mode.CLIPPY:
            _compile_and_run(exercise)
        case _:
            raise ValueError(f"unknown mode {exercise.mode!r}")


def reset(exercise: Exercise) -> subprocess.Popen:
    """Start `git stash -- <path>` for the exercise and return the process."""
    try:
        return subprocess.Popen(["git", "stash", "--", str(exercise.path)])
    except OSError as exc:
        raise ExerciseFailed(exercise) from exc


def _compile_and_run(exercise: Exercise) -> None:
    console = Console(highlight=False, soft_wrap=True)
    try:
        with console.status(f"Compiling {exercise}...") as status:
            try:
                compiled = exercise.compile()
            except CompilationError as error:
                status.stop()
                ui.warn(f"Compilation of {exercise} failed!, Compiler error message:\n")
                print(error.output.stderr)
                raise ExerciseFailed(exercise) from error
            with compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except RunError as error:
        print(error.output.stdout)
        print(error.output.stderr)
        ui.warn(f"Ran {exercise} with errors")
        raise ExerciseFailed(exercise) from error
    print(output.stdout)
    ui.success(f"Successfully ran {exercise}")
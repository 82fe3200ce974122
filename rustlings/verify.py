"""Checking exercises in order and prompting the learner about their progress."""

from __future__ import annotations

import math
from collections.abc import Iterable
from enum import Enum, auto

from rich.console import Console
from rich.text import Text

from rustlings import ui
from rustlings.exercise import (
    CompilationError,
    Done,
    Exercise,
    Mode,
    RunError,
)

_BAR_WIDTH = 60
_SEPARATOR = "===================="


class RunMode(Enum):
    """Whether a successful test run goes on to prompt about completion."""

    INTERACTIVE = auto()
    NON_INTERACTIVE = auto()


class ExerciseFailed(Exception):
    """An exercise did not compile, did not pass, or is still marked pending."""

    def __init__(self, exercise: Exercise) -> None:
        super().__init__(f"{exercise} failed")
        self.exercise = exercise


def _console() -> Console:
    return Console(highlight=False, soft_wrap=True)


def _bar(position: int, total: int) -> str:
    filled = min(_BAR_WIDTH * position // total, _BAR_WIDTH) if total else _BAR_WIDTH
    if filled >= _BAR_WIDTH:
        return "#" * _BAR_WIDTH
    return "#" * filled + ">" + "-" * (_BAR_WIDTH - filled - 1)


def _show_progress(position: int, total: int, percentage: float) -> None:
    print(f"Progress: [{_bar(position, total)}] {position}/{total} ({percentage:.1f} %)")


def _report_compile_failure(exercise: Exercise, error: CompilationError) -> None:
    ui.warn(f"Compiling of {exercise} failed! Please try again. Here's the output:")
    print(error.output.stderr)


def _compile_only(exercise: Exercise, success_hints: bool) -> bool:
    try:
        with _console().status(f"Compiling {exercise}..."):
            exercise.compile().close()
    except CompilationError as error:
        _report_compile_failure(exercise, error)
        return False
    return prompt_for_completion(exercise, None, success_hints)


def _compile_and_run_interactively(exercise: Exercise, success_hints: bool) -> bool:
    try:
        with _console().status(f"Compiling {exercise}...") as status:
            try:
                compiled = exercise.compile()
            except CompilationError as error:
                status.stop()
                _report_compile_failure(exercise, error)
                return False
            with compiled:
                status.update(f"Running {exercise}...")
                output = compiled.run()
    except RunError as error:
        ui.warn(f"Ran {exercise} with errors")
        print(error.output.stdout)
        print(error.output.stderr)
        return False
    return prompt_for_completion(exercise, output.stdout, success_hints)


def _compile_and_test(
    exercise: Exercise, run_mode: RunMode, verbose: bool, success_hints: bool
) -> bool:
    try:
        with _console().status(f"Testing {exercise}...") as status:
            try:
                compiled = exercise.compile()
            except CompilationError as error:
                status.stop()
                _report_compile_failure(exercise, error)
                return False
            with compiled:
                output = compiled.run()
    except RunError as error:
        ui.warn(f"Testing of {exercise} failed! Please try again. Here's the output:")
        print(error.output.stdout)
        return False
    if verbose:
        print(output.stdout)
    if run_mode is RunMode.INTERACTIVE:
        return prompt_for_completion(exercise, None, success_hints)
    return True


def _check(exercise: Exercise, verbose: bool, success_hints: bool) -> bool:
    match exercise.mode:
        case Mode.TEST | Mode.BUILD_SCRIPT:
            return _compile_and_test(exercise, RunMode.INTERACTIVE, verbose, success_hints)
        case Mode.COMPILE:
            return _compile_and_run_interactively(exercise, success_hints)
        case Mode.CLIPPY:
            return _compile_only(exercise, success_hints)
    raise ValueError(f"unknown mode {exercise.mode!r}")


def verify(
    exercises: Iterable[Exercise],
    progress: tuple[int, int],
    verbose: bool = False,
    success_hints: bool = False,
) -> None:
    """Check exercises in order; raise ExerciseFailed at the first that is not done."""
    num_done, total = progress
    step = 100.0 / total if total else math.nan
    percentage = num_done * step if total else math.nan
    position = num_done
    _show_progress(position, total, percentage)
    for exercise in exercises:
        if not _check(exercise, verbose, success_hints):
            raise ExerciseFailed(exercise)
        percentage += step
        position += 1
        _show_progress(position, total, percentage)


def test(exercise: Exercise, verbose: bool = False) -> None:
    """Compile and run an exercise's tests; raise ExerciseFailed if they fail."""
    if not _compile_and_test(exercise, RunMode.NON_INTERACTIVE, verbose, False):
        raise ExerciseFailed(exercise)


def _success_message(mode: Mode, no_emoji: bool) -> str:
    match mode:
        case Mode.COMPILE:
            return "The code is compiling!"
        case Mode.TEST:
            return "The code is compiling, and the tests pass!"
        case Mode.CLIPPY:
            if no_emoji:
                return "The code is compiling, and Clippy is happy!"
            return "The code is compiling, and 📎 Clippy 📎 is happy!"
        case Mode.BUILD_SCRIPT:
            return "Build script works!"
    raise ValueError(f"unknown mode {mode!r}")


def _announce(exercise: Exercise) -> None:
    match exercise.mode:
        case Mode.COMPILE:
            ui.success(f"Successfully ran {exercise}!")
        case Mode.TEST:
            ui.success(f"Successfully tested {exercise}!")
        case Mode.CLIPPY | Mode.BUILD_SCRIPT:
            ui.success(f"Successfully compiled {exercise}!")


def _print_section(console: Console, title: str, body: str) -> None:
    print(title)
    console.print(Text(_SEPARATOR, style="bold"))
    print(body)
    console.print(Text(_SEPARATOR, style="bold"))
    print()


def prompt_for_completion(
    exercise: Exercise, prompt_output: str | None, success_hints: bool
) -> bool:
    """Return True if the exercise is done; otherwise show where the marker is and return False."""
    state = exercise.state()
    if state == Done():
        return True

    _announce(exercise)
    no_emoji = ui.no_emoji()
    message = _success_message(exercise.mode, no_emoji)
    console = _console()

    print()
    print(f"~*~ {message} ~*~" if no_emoji else f"🎉 🎉  {message} 🎉 🎉")
    print()

    if prompt_output is not None:
        _print_section(console, "Output:", prompt_output)
    if success_hints:
        _print_section(console, "Hints:", exercise.hint)

    print("You can keep working on this exercise,")
    console.print(
        Text.assemble(
            "or jump into the next one by removing the ",
            ("`I AM NOT DONE`", "bold"),
            " comment:",
        )
    )
    print()
    for context_line in state.context:
        console.print(
            Text.assemble(
                (f"{context_line.number:>2}", "bold blue"),
                " ",
                ("|", "blue"),
                "  ",
                (context_line.line, "bold" if context_line.important else ""),
            )
        )
    return False
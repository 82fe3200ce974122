"""Exercises: loading them, compiling, running and checking their progress marker."""

from __future__ import annotations

import os
import re
import subprocess
import threading
import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from rustlings import ui

RUSTC_COLOR_ARGS = ("--color", "always")
RUSTC_EDITION_ARGS = ("--edition", "2021")
I_AM_DONE_REGEX = re.compile(r"^\s*///?\s*I\s+AM\s+NOT\s+DONE", re.MULTILINE)
CONTEXT = 2
CLIPPY_CARGO_TOML_PATH = "./exercises/clippy/Cargo.toml"
BUILD_SCRIPT_CARGO_TOML_PATH = "./exercises/tests/Cargo.toml"


def temp_file() -> str:
    """Return a temporary binary name unique to this process and thread."""
    return f"./temp_{os.getpid()}_ThreadId{threading.get_ident()}"


def clean() -> None:
    """Remove the temporary binary, ignoring any error."""
    try:
        os.remove(temp_file())
    except OSError:
        pass


class Mode(Enum):
    """How an exercise is checked."""

    COMPILE = "compile"
    TEST = "test"
    CLIPPY = "clippy"
    BUILD_SCRIPT = "buildscript"


@dataclass(frozen=True)
class ContextLine:
    """A source line shown around the progress marker."""

    line: str
    number: int
    important: bool


@dataclass(frozen=True)
class Done:
    """The exercise no longer carries the progress marker."""


@dataclass(frozen=True)
class Pending:
    """The exercise still carries the marker; holds the lines around it."""

    context: tuple[ContextLine, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "context", tuple(self.context))


@dataclass(frozen=True)
class ExerciseOutput:
    """Captured standard output and error of a command."""

    stdout: str
    stderr: str


class CompilationError(Exception):
    """Compiling an exercise failed."""

    def __init__(self, exercise: "Exercise", output: ExerciseOutput) -> None:
        super().__init__(f"compilation of {exercise} failed")
        self.exercise = exercise
        self.output = output


class RunError(Exception):
    """Running a compiled exercise exited with a failure status."""

    def __init__(self, exercise: "Exercise", output: ExerciseOutput) -> None:
        super().__init__(f"running {exercise} failed")
        self.exercise = exercise
        self.output = output


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


def _output(result: subprocess.CompletedProcess) -> ExerciseOutput:
    return ExerciseOutput(_decode(result.stdout), _decode(result.stderr))


def _capture(args: list[str], failure: str) -> subprocess.CompletedProcess:
    try:
        return subprocess.run(args, capture_output=True, check=False)
    except OSError as exc:
        raise RuntimeError(failure) from exc


def _lines(text: str) -> list[str]:
    parts = text.split("\n")
    if parts and parts[-1] == "":
        parts.pop()
    return [part[:-1] if part.endswith("\r") else part for part in parts]


class CompiledExercise:
    """A successfully compiled exercise; closing it removes the binary."""

    def __init__(self, exercise: "Exercise") -> None:
        self.exercise = exercise
        self._closed = False

    def run(self) -> ExerciseOutput:
        """Run the compiled binary; raise RunError if it fails."""
        return self.exercise._run()

    def close(self) -> None:
        """Remove the temporary binary."""
        if not self._closed:
            self._closed = True
            clean()

    def __enter__(self) -> "CompiledExercise":
        return self

    def __exit__(self, *args) -> None:
        self.close()


@dataclass
class Exercise:
    """One exercise as described in info.toml."""

    name: str
    path: Path
    mode: Mode
    hint: str = ""

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        self.mode = Mode(self.mode)

    def __str__(self) -> str:
        return str(self.path)

    def _manifest(self) -> str:
        name = self.name
        return (
            "[package]\n"
            f'name = "{name}"\n'
            'version = "0.0.1"\n'
            'edition = "2021"\n'
            "[[bin]]\n"
            f'name = "{name}"\n'
            f'path = "{name}.rs"'
        )

    def _write_manifest(self, path: str) -> None:
        message = (
            "Failed to write Clippy Cargo.toml file."
            if ui.no_emoji()
            else "Failed to write 📎 Clippy 📎 Cargo.toml file."
        )
        try:
            Path(path).write_text(self._manifest(), encoding="utf-8")
        except OSError as exc:
            raise RuntimeError(message) from exc

    def _rustc_args(self, *extra: str) -> list[str]:
        return [
            "rustc",
            *extra,
            str(self.path),
            "-o",
            temp_file(),
            *RUSTC_COLOR_ARGS,
            *RUSTC_EDITION_ARGS,
        ]

    def _compile_command(self) -> subprocess.CompletedProcess:
        failure = "Failed to run 'compile' command."
        match self.mode:
            case Mode.COMPILE:
                return _capture(self._rustc_args(), failure)
            case Mode.TEST:
                return _capture(self._rustc_args("--test"), failure)
            case Mode.CLIPPY:
                self._write_manifest(CLIPPY_CARGO_TOML_PATH)
                # Build a binary too so the exercise can be run afterwards.
                _capture(self._rustc_args(), "Failed to compile!")
                _capture(
                    ["cargo", "clean", "--manifest-path", CLIPPY_CARGO_TOML_PATH, *RUSTC_COLOR_ARGS],
                    "Failed to run 'cargo clean'",
                )
                return _capture(
                    [
                        "cargo",
                        "clippy",
                        "--manifest-path",
                        CLIPPY_CARGO_TOML_PATH,
                        *RUSTC_COLOR_ARGS,
                        "--",
                        "-D",
                        "warnings",
                        "-D",
                        "clippy::float_cmp",
                    ],
                    failure,
                )
            case Mode.BUILD_SCRIPT:
                self._write_manifest(BUILD_SCRIPT_CARGO_TOML_PATH)
                return _capture(
                    ["cargo", "test", "--manifest-path", BUILD_SCRIPT_CARGO_TOML_PATH],
                    failure,
                )
        raise ValueError(f"unknown mode {self.mode!r}")

    def compile(self) -> CompiledExercise:
        """Compile the exercise; raise CompilationError on failure."""
        result = self._compile_command()
        if result.returncode == 0:
            return CompiledExercise(self)
        clean()
        raise CompilationError(self, _output(result))

    def _run(self) -> ExerciseOutput:
        if self.mode is Mode.BUILD_SCRIPT:
            return ExerciseOutput("", "")
        args = [temp_file()]
        if self.mode is Mode.TEST:
            args.append("--show-output")
        result = _capture(args, "Failed to run 'run' command")
        output = _output(result)
        if result.returncode != 0:
            raise RunError(self, output)
        return output

    def state(self) -> Done | Pending:
        """Report whether the progress marker is still in the source."""
        source = self.path.read_text(encoding="utf-8")
        if not I_AM_DONE_REGEX.search(source):
            return Done()
        lines = _lines(source)
        index = next(
            (i for i, line in enumerate(lines) if I_AM_DONE_REGEX.search(line)),
            None,
        )
        if index is None:
            raise RuntimeError("This should not happen at all")
        low = max(index - CONTEXT, 0)
        high = index + CONTEXT
        return Pending(
            tuple(
                ContextLine(line, number + 1, number == index)
                for number, line in enumerate(lines[low : high + 1], start=low)
            )
        )

    def looks_done(self) -> bool:
        """True if the marker has been removed from the source."""
        return self.state() == Done()


_FIELDS = ("name", "path", "mode", "hint")


def _exercise_from_table(table: dict) -> Exercise:
    for key in _FIELDS:
        if key not in table:
            raise ValueError(f"missing field `{key}`")
        if not isinstance(table[key], str):
            raise ValueError(f"field `{key}` must be a string")
    try:
        mode = Mode(table["mode"])
    except ValueError:
        raise ValueError(f"unknown variant `{table['mode']}`") from None
    return Exercise(table["name"], Path(table["path"]), mode, table["hint"])


def parse_exercises(text: str) -> list[Exercise]:
    """Parse the exercise list from info.toml text."""
    data = tomllib.loads(text)
    if "exercises" not in data:
        raise ValueError("missing field `exercises`")
    entries = data["exercises"]
    if not isinstance(entries, list):
        raise ValueError("field `exercises` must be an array of tables")
    return [_exercise_from_table(entry) for entry in entries]


def load_exercises(path: str | os.PathLike = "info.toml") -> list[Exercise]:
    """Read and parse an info.toml file."""
    return parse_exercises(Path(path).read_text(encoding="utf-8"))
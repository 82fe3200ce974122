"""Watch mode: re-check exercises whenever their files change."""

from __future__ import annotations

import os
import queue
import subprocess
import sys
import threading
import time
from collections.abc import Callable, Iterable
from enum import Enum, auto
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from rustlings.exercise import Exercise
from rustlings.verify import ExerciseFailed, verify

WATCH_ROOT = "./exercises"
_POLL_SECONDS = 1.0
_DEBOUNCE_SECONDS = 1.0
_RESET_TERMINAL = "\x1bc"

_HELP = (
    "Commands available to you in watch mode:\n"
    "  hint   - prints the current exercise's hint\n"
    "  clear  - clears the screen\n"
    "  quit   - quits watch mode\n"
    "  !<cmd> - executes a command, like `!rustc --explain E0381`\n"
    "  help   - displays this help message\n"
    "\n"
    "Watch mode automatically re-evaluates the current exercise\n"
    "when you edit a file's contents."
)


class WatchStatus(Enum):
    """How watch mode ended."""

    FINISHED = auto()
    UNFINISHED = auto()


def handle_command(line: str, hint: str | None) -> bool:
    """Carry out one watch-shell command; return True if the user asked to quit."""
    command = line.strip()
    if command == "hint":
        if hint is not None:
            print(hint)
    elif command == "clear":
        print("\x1b[2J\x1b[1;1H")
    elif command == "quit":
        print("Bye!")
        return True
    elif command == "help":
        print(_HELP)
    elif command.startswith("!"):
        cmd = command[1:]
        parts = cmd.split()
        if not parts:
            print("no command provided")
        else:
            try:
                subprocess.run(parts, check=False)
            except OSError as exc:
                print(f"failed to execute command `{cmd}`: {exc}")
    else:
        print(f"unknown command: {command}")
    return False


def spawn_watch_shell(
    hint_holder: Callable[[], str | None], quit_event: threading.Event
) -> threading.Thread:
    """Start a background thread reading watch-shell commands from standard input."""
    print(
        "Welcome to watch mode! You can type 'help' to get an overview of "
        "the commands you can use here."
    )
    stream = sys.stdin

    def loop() -> None:
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as exc:
                print(f"error reading command: {exc}")
                return
            if not line:
                return
            if handle_command(line, hint_holder()):
                quit_event.set()
                return

    thread = threading.Thread(target=loop, name="watch-shell", daemon=True)
    thread.start()
    return thread


class _ChangeHandler(FileSystemEventHandler):
    def __init__(self, events: queue.Queue[Path]) -> None:
        super().__init__()
        self._events = events

    def _push(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._events.put(Path(os.fsdecode(event.src_path)))

    def on_created(self, event: FileSystemEvent) -> None:
        self._push(event)

    def on_modified(self, event: FileSystemEvent) -> None:
        self._push(event)


def _clear_screen(stream=None) -> None:
    """Reset the terminal with an ANSI escape code and flush it out at once."""
    out = sys.stdout if stream is None else stream
    out.write(_RESET_TERMINAL + "\n")
    out.flush()


def _ends_with(full: Path, tail: Path) -> bool:
    parts = tail.parts
    if not parts:
        return True
    return len(parts) <= len(full.parts) and full.parts[-len(parts):] == parts


def _next_paths(events: queue.Queue[Path]) -> list[Path]:
    """Wait for a change, then gather the further changes that follow it closely."""
    try:
        first = events.get(timeout=_POLL_SECONDS)
    except queue.Empty:
        return []
    seen = {first: None}
    deadline = time.monotonic() + _DEBOUNCE_SECONDS
    while (remaining := deadline - time.monotonic()) > 0:
        try:
            seen.setdefault(events.get(timeout=remaining), None)
        except queue.Empty:
            break
    return list(seen)


def _watch_loop(
    exercises: list[Exercise],
    events: queue.Queue[Path],
    verbose: bool,
    success_hints: bool,
) -> WatchStatus:
    _clear_screen()
    try:
        verify(exercises, (0, len(exercises)), verbose, success_hints)
    except ExerciseFailed as failure:
        current_hint = failure.exercise.hint
    else:
        return WatchStatus.FINISHED

    lock = threading.Lock()

    def read_hint() -> str | None:
        with lock:
            return current_hint

    quit_event = threading.Event()
    spawn_watch_shell(read_hint, quit_event)

    while True:
        for changed in _next_paths(events):
            if changed.suffix != ".rs" or not changed.exists():
                continue
            filepath = changed.resolve()
            touched = next((e for e in exercises if _ends_with(filepath, e.path)), None)
            pending = [touched] if touched is not None else []
            pending.extend(
                e
                for e in exercises
                if not e.looks_done() and not _ends_with(filepath, e.path)
            )
            num_done = sum(1 for e in exercises if e.looks_done())
            _clear_screen()
            try:
                verify(pending, (num_done, len(exercises)), verbose, success_hints)
            except ExerciseFailed as failure:
                with lock:
                    current_hint = failure.exercise.hint
            else:
                return WatchStatus.FINISHED
        if quit_event.is_set():
            return WatchStatus.UNFINISHED


def watch(
    exercises: Iterable[Exercise], verbose: bool = False, success_hints: bool = False
) -> WatchStatus:
    """Verify exercises, then keep re-verifying as files under ./exercises change."""
    exercise_list = list(exercises)
    root = Path(WATCH_ROOT)
    if not root.is_dir():
        raise FileNotFoundError(f"cannot watch {root}: no such directory")
    events: queue.Queue[Path] = queue.Queue()
    observer = Observer()
    observer.schedule(_ChangeHandler(events), str(root), recursive=True)
    observer.start()
    try:
        return _watch_loop(exercise_list, events, verbose, success_hints)
    finally:
        observer.stop()
        observer.join()
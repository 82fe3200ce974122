# rustlings

A runner for small Rust exercises. Each exercise is a `.rs` file that fails to
compile or fails its tests until you fix it. The runner compiles and runs the
exercises with `rustc` (or `cargo clippy` / `cargo test` for some kinds),
reports what went wrong, and moves you on to the next one once you are done.

## Requirements

- Python 3.11 or later
- A Rust toolchain with `rustc` on your `PATH` (and `cargo` for Clippy and
  build-script exercises)

## Installation

```
pip install .
```

## Getting started

Run every command from the directory that holds `info.toml`. That file lists
the exercises in their recommended order as `[[exercises]]` tables, each with
a `name`, a `path`, a `mode` (`compile`, `test`, `clippy` or `buildscript`)
and a `hint`. If `info.toml` is missing, or `rustc --version` does not run,
the command prints a message and exits with status 1.

```
rustlings
```

With no subcommand it prints a welcome banner and a short introduction.

## Commands

| Command | What it does |
| --- | --- |
| `rustlings watch` | Verifies the exercises in order, then re-checks whenever a `.rs` file under `./exercises` is created or modified. Add `--success-hints` to show hints on success. |
| `rustlings verify` | Verifies all exercises in order and stops at the first one that fails or still carries its `I AM NOT DONE` marker (exit status 1). |
| `rustlings run <name>` | Compiles and runs (or tests) a single exercise. |
| `rustlings hint <name>` | Prints the hint for an exercise. |
| `rustlings reset <name>` | Starts `git stash -- <path>` for the exercise. |
| `rustlings list` | Lists exercises with their status, followed by your progress. |
| `rustlings lsp` | Writes `rust-project.json` in the current directory so rust-analyzer understands the exercises. |
| `rustlings cicvverify` | Runs every exercise concurrently and writes a JSON summary to `.github/result/check_result.json`. |

For `run`, `hint` and `reset`, the name `next` picks the first exercise that
still carries its marker. An unknown name prints a message and exits with
status 1.

Global options: `--nocapture` shows the output of test exercises, and
`-v`/`--version` prints the version. Invalid usage exits with status 1.

### Listing

```
rustlings list --unsolved
rustlings list --solved --names
rustlings list --filter variables,if --paths
```

`-f`/`--filter` takes comma-separated substrings, lower-cased, that are matched
against exercise names and paths. `-p`/`--paths` and `-n`/`--names` print only
paths or names; `-u`/`--unsolved` and `-s`/`--solved` restrict the listing by
status.

### Watch mode

While watching, type one of these commands:

- `hint` prints the hint for the exercise that last failed
- `clear` clears the screen
- `quit` leaves watch mode
- `!<cmd>` runs a command, for example `!rustc --explain E0381`
- `help` shows this list

### rust-analyzer support

`rustlings lsp` takes the standard library sources from `RUST_SRC_PATH` if it
is set, otherwise from `rustc --print sysroot`, and adds one crate for every
`.rs` file under `./exercises`.

### Grading report

`rustlings cicvverify` writes a report with one `{"name", "result"}` entry per
exercise (in the order they finished), a `user_name` field (always `null`) and
`statistics` holding `total_exercations`, `total_succeeds`, `total_failures`
and `total_time` in seconds. The `.github/result` directory must already
exist.

## Marking an exercise as done

An exercise that compiles and passes still counts as pending while its source
contains an `// I AM NOT DONE` comment. Remove that line to move on to the
next exercise.

Set the `NO_EMOJI` environment variable to get plain-text markers in the
output.

## Using it from Python

```python
from rustlings.exercise import load_exercises
from rustlings.cli import list_exercises

exercises = load_exercises("info.toml")
for line in list_exercises(exercises, unsolved=True):
    print(line)
```

`Exercise.state()` returns `Done()` or `Pending(context)`, where `context`
holds the lines around the marker. `rustlings.verify.verify` and
`rustlings.run.run` raise `ExerciseFailed` when an exercise does not pass.

## What this package does not include

The package is only the runner. It ships no exercises and no `info.toml`;
you supply an exercises directory and its `info.toml` yourself.

## Running the tests

```
pip install ".[test]"
pytest
```
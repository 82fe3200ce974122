"""Runner for small Rust exercises: compile, run and test them, track progress and give hints."""

__version__ = "5.5.1"
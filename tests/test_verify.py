import subprocess
from pathlib import Path

import pytest

from rustlings import verify as verify_module
from rustlings.exercise import Exercise, Mode, temp_file
from rustlings.verify import ExerciseFailed, prompt_for_completion, verify

PENDING = "// fake_exercise\n\n// I AM NOT DONE\n\nfn main() {\n\n}\n"
FINISHED = "// fake_exercise\n\nfn main() {\n\n}\n"


class FakeToolchain:
    def __init__(self, compile_rc=0, run_rc=0, stdout="", stderr="",
                 compile_stderr="error: expected pattern"):
        self.compile_rc = compile_rc
        self.run_rc = run_rc
        self.stdout = stdout
        self.stderr = stderr
        self.compile_stderr = compile_stderr
        self.calls = []

    def __call__(self, args, **kwargs):
        args = list(args)
        self.calls.append(args)
        if args[0] in ("rustc", "cargo"):
            if "-o" in args:
                Path(args[args.index("-o") + 1]).write_bytes(b"")
            err = self.compile_stderr.encode() if self.compile_rc else b""
            return subprocess.CompletedProcess(args, self.compile_rc, b"", err)
        return subprocess.CompletedProcess(
            args, self.run_rc, self.stdout.encode(), self.stderr.encode()
        )


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("NO_EMOJI", raising=False)
    return tmp_path


def install(monkeypatch, **kwargs):
    fake = FakeToolchain(**kwargs)
    monkeypatch.setattr(subprocess, "run", fake)
    return fake


def make(directory, name, source, mode=Mode.COMPILE, hint=""):
    path = directory / f"{name}.rs"
    path.write_text(source, encoding="utf-8")
    return Exercise(name, path, mode, hint)


def test_verify_all_done_succeeds(workdir, monkeypatch, capsys):
    install(monkeypatch)
    exercises = [make(workdir, "a", FINISHED), make(workdir, "b", FINISHED)]
    assert verify(exercises, (0, 2)) is None
    out = capsys.readouterr().out
    assert "Progress:" in out
    assert "2/2" in out
    assert not Path(temp_file()).exists()


def test_verify_resumes_from_progress(workdir, monkeypatch, capsys):
    install(monkeypatch)
    verify([make(workdir, "a", FINISHED)], (3, 5))
    out = capsys.readouterr().out
    assert "3/5" in out
    assert "4/5" in out


def test_verify_compile_failure_raises(workdir, monkeypatch, capsys):
    install(monkeypatch, compile_rc=1)
    exercise = make(workdir, "broken", FINISHED)
    with pytest.raises(ExerciseFailed) as excinfo:
        verify([exercise], (0, 1))
    assert excinfo.value.exercise is exercise
    out = capsys.readouterr().out
    assert f"Compiling of {exercise} failed! Please try again." in out
    assert "error: expected pattern" in out


def test_verify_stops_at_first_failure(workdir, monkeypatch):
    fake = install(monkeypatch, compile_rc=1)
    first = make(workdir, "first", FINISHED)
    second = make(workdir, "second", FINISHED)
    with pytest.raises(ExerciseFailed) as excinfo:
        verify([first, second], (0, 2))
    assert excinfo.value.exercise is first
    assert all(str(second.path) not in call for call in fake.calls)


def test_verify_pending_exercise_prompts(workdir, monkeypatch, capsys):
    install(monkeypatch, stdout="HELLO FROM BINARY")
    exercise = make(workdir, "pending", PENDING)
    with pytest.raises(ExerciseFailed):
        verify([exercise], (0, 1))
    out = capsys.readouterr().out
    assert f"Successfully ran {exercise}!" in out
    assert "Output:" in out
    assert "HELLO FROM BINARY" in out
    assert "I AM NOT DONE" in out


def test_verify_run_failure_reports_output(workdir, monkeypatch, capsys):
    install(monkeypatch, run_rc=101, stdout="boom out", stderr="boom err")
    exercise = make(workdir, "crash", FINISHED)
    with pytest.raises(ExerciseFailed):
        verify([exercise], (0, 1))
    out = capsys.readouterr().out
    assert f"Ran {exercise} with errors" in out
    assert "boom out" in out
    assert "boom err" in out
    assert not Path(temp_file()).exists()


def test_verify_test_failure_reports(workdir, monkeypatch, capsys):
    install(monkeypatch, run_rc=101, stdout="assertion failed")
    exercise = make(workdir, "tfail", FINISHED, Mode.TEST)
    with pytest.raises(ExerciseFailed):
        verify([exercise], (0, 1))
    out = capsys.readouterr().out
    assert f"Testing of {exercise} failed!" in out
    assert "assertion failed" in out


def test_test_mode_runs_harness_with_show_output(workdir, monkeypatch):
    fake = install(monkeypatch)
    exercise = make(workdir, "harness", FINISHED, Mode.TEST)
    verify([exercise], (0, 1))
    assert [temp_file(), "--show-output"] in fake.calls
    assert any("--test" in call for call in fake.calls)


def test_build_script_does_not_run_binary(workdir, monkeypatch):
    (workdir / "exercises" / "tests").mkdir(parents=True)
    fake = install(monkeypatch)
    exercise = make(workdir, "build", FINISHED, Mode.BUILD_SCRIPT)
    verify([exercise], (0, 1))
    assert [call[0] for call in fake.calls] == ["cargo"]
    manifest = (workdir / "exercises" / "tests" / "Cargo.toml").read_text()
    assert 'name = "build"' in manifest


def test_non_interactive_test_ignores_marker(workdir, monkeypatch, capsys):
    install(monkeypatch, stdout="THIS TEST TOO SHALL PASS")
    exercise = make(workdir, "pending_test", PENDING, Mode.TEST)
    assert verify_module.test(exercise, verbose=False) is None
    out = capsys.readouterr().out
    assert "I AM NOT DONE" not in out
    assert "THIS TEST TOO SHALL PASS" not in out


def test_non_interactive_test_verbose_shows_output(workdir, monkeypatch, capsys):
    install(monkeypatch, stdout="THIS TEST TOO SHALL PASS")
    exercise = make(workdir, "ok_test", FINISHED, Mode.TEST)
    verify_module.test(exercise, verbose=True)
    assert "THIS TEST TOO SHALL PASS" in capsys.readouterr().out


def test_non_interactive_test_failure_raises(workdir, monkeypatch):
    install(monkeypatch, run_rc=101)
    exercise = make(workdir, "bad_test", FINISHED, Mode.TEST)
    with pytest.raises(ExerciseFailed) as excinfo:
        verify_module.test(exercise)
    assert excinfo.value.exercise is exercise


def test_prompt_done_returns_true_silently(workdir, capsys):
    exercise = make(workdir, "done", FINISHED)
    assert prompt_for_completion(exercise, "anything", True) is True
    assert capsys.readouterr().out == ""


def test_prompt_pending_shows_context_and_hints(workdir, capsys):
    exercise = make(workdir, "pending", PENDING, hint="Try harder")
    assert prompt_for_completion(exercise, None, True) is False
    out = capsys.readouterr().out
    assert "🎉 🎉  The code is compiling! 🎉 🎉" in out
    assert "Hints:" in out
    assert "Try harder" in out
    assert "Output:" not in out
    assert " 3 |  // I AM NOT DONE" in out
    assert "removing the `I AM NOT DONE` comment:" in out


def test_prompt_without_hints_hides_hint(workdir, capsys):
    exercise = make(workdir, "pending", PENDING, hint="Secret hint text")
    assert prompt_for_completion(exercise, None, False) is False
    assert "Secret hint text" not in capsys.readouterr().out


def test_prompt_no_emoji(workdir, monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    exercise = make(workdir, "pending", PENDING, Mode.TEST)
    assert prompt_for_completion(exercise, None, False) is False
    out = capsys.readouterr().out
    assert "~*~ The code is compiling, and the tests pass! ~*~" in out
    assert "🎉" not in out
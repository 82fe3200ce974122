from rustlings import ui


def test_no_emoji_true_when_set(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "1")
    assert ui.no_emoji() is True


def test_no_emoji_true_when_set_empty(monkeypatch):
    monkeypatch.setenv("NO_EMOJI", "")
    assert ui.no_emoji() is True


def test_no_emoji_false_when_unset(monkeypatch):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    assert ui.no_emoji() is False


def test_warn_without_emoji(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    line = ui.warn("Ran exercise with errors")
    assert line == "! Ran exercise with errors"
    assert capsys.readouterr().out.strip() == line


def test_warn_with_emoji(monkeypatch, capsys):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    line = ui.warn("Ran exercise with errors")
    assert line == "⚠️  Ran exercise with errors"
    assert "Ran exercise with errors" in capsys.readouterr().out


def test_success_without_emoji(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    line = ui.success("Successfully ran quiz1")
    assert line == "✓ Successfully ran quiz1"
    assert capsys.readouterr().out.strip() == line


def test_success_with_emoji(monkeypatch, capsys):
    monkeypatch.delenv("NO_EMOJI", raising=False)
    line = ui.success("Successfully ran quiz1")
    assert line == "✅ Successfully ran quiz1"
    assert capsys.readouterr().out.strip() == line


def test_long_message_is_not_wrapped(monkeypatch, capsys):
    monkeypatch.setenv("NO_EMOJI", "1")
    message = "word " * 60
    line = ui.success(message.strip())
    out = capsys.readouterr().out
    assert out.count("\n") == 1
    assert out.strip() == line
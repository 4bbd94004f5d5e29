import io
import logging

from conftest import FakeInstaller, RecordingConverter, ScriptedChecker

from mp4remux import main as main_module
from mp4remux.config import Settings
from mp4remux.console import EXIT_FAILURES, EXIT_OK, EXIT_TOOL_UNAVAILABLE, ConsoleSession
from mp4remux.conversion_engine.orchestrator import BatchOrchestrator
from mp4remux.models import BatchState


def make_session(checker=None, installer=None, converter=None, answers=(), assume_yes=False):
    orchestrator = BatchOrchestrator(
        checker=checker or ScriptedChecker(True),
        installer=installer or FakeInstaller(),
        converter=converter or RecordingConverter(),
    )
    replies = iter(answers)
    prompts = []

    def fake_input(prompt):
        prompts.append(prompt)
        try:
            return next(replies)
        except StopIteration:
            raise EOFError from None

    out = io.StringIO()
    session = ConsoleSession(orchestrator, assume_yes=assume_yes, input_func=fake_input, out=out)
    return session, out, prompts


def test_successful_batch_renders_items():
    session, out, prompts = make_session()

    assert session.run(["a.mkv", "b.avi"]) == EXIT_OK

    text = out.getvalue()
    assert "a.mkv  converting..." in text
    assert "a.mkv  → a.mp4  [1/2]" in text
    assert "b.avi  → b.mp4  [2/2]" in text
    assert text.rstrip().endswith("done 2/2")
    assert prompts == []
    assert session.last_output_path().endswith("b.mp4")


def test_failed_item_shows_tool_diagnostic():
    session, out, _ = make_session(converter=RecordingConverter(failures={"b.avi": "unsupported codec"}))

    assert session.run(["a.mkv", "b.avi"]) == EXIT_FAILURES

    text = out.getvalue()
    assert "b.avi  failed: unsupported codec" in text
    assert "completed with errors 2/2" in text


def test_missing_tool_quit():
    converter = RecordingConverter()
    session, out, prompts = make_session(checker=ScriptedChecker(False), converter=converter, answers=["q"])

    assert session.run(["a.mkv"]) == EXIT_TOOL_UNAVAILABLE

    assert "ffmpeg is required" in out.getvalue()
    assert len(prompts) == 1
    assert converter.calls == []
    assert session.orchestrator.state == BatchState.IDLE


def test_missing_tool_install_choice():
    installer = FakeInstaller()
    session, out, _ = make_session(checker=ScriptedChecker(False, True), installer=installer, answers=["i"])

    assert session.run(["a.mkv"]) == EXIT_OK

    assert installer.calls == 1
    assert "downloading ffmpeg" in out.getvalue()


def test_install_failure_then_manual_then_retry():
    installer = FakeInstaller(fail_times=1, error="no package manager")
    checker = ScriptedChecker(False, True)
    session, out, _ = make_session(checker=checker, installer=installer, answers=["i", "m", ""])

    assert session.run(["a.mkv"]) == EXIT_OK

    text = out.getvalue()
    assert "install failed: no package manager" in text
    assert "Install ffmpeg with your package manager." in text
    assert checker.calls == 2


def test_invalid_answer_asks_again():
    session, out, prompts = make_session(checker=ScriptedChecker(False, True), answers=["x", "r"])

    assert session.run(["a.mkv"]) == EXIT_OK
    assert len(prompts) == 2
    assert "Please answer" in out.getvalue()


def test_assume_yes_gives_up_after_failed_install():
    installer = FakeInstaller(fail_times=5)
    session, out, prompts = make_session(checker=ScriptedChecker(False), installer=installer, assume_yes=True)

    assert session.run(["a.mkv"]) == EXIT_TOOL_UNAVAILABLE

    assert installer.calls == 1
    assert prompts == []
    assert "Install ffmpeg with your package manager." in out.getvalue()


def test_main_without_supported_files(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(main_module, "load_settings", lambda: Settings())
    (tmp_path / "notes.txt").write_text("hello", encoding="utf-8")
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]

    try:
        exit_code = main_module.main([str(tmp_path / "notes.txt"), "--log-dir", str(tmp_path / "logs")])
    finally:
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        for handler in saved_handlers:
            root_logger.addHandler(handler)

    assert exit_code == EXIT_FAILURES
    assert "No supported video files" in capsys.readouterr().err
    assert list((tmp_path / "logs").glob("mp4remux_*.log"))


def test_save_settings_flag_persists_options(tmp_path, monkeypatch):
    saved = []
    monkeypatch.setattr(main_module, "load_settings", lambda: Settings())
    monkeypatch.setattr(main_module, "save_settings", lambda settings: saved.append(settings) or True)
    root_logger = logging.getLogger()
    saved_handlers = root_logger.handlers[:]

    try:
        main_module.main([
            str(tmp_path / "missing.mkv"), "--save-settings", "-o", str(tmp_path / "out"),
            "--timeout", "90", "--log-dir", str(tmp_path / "logs"),
        ])
    finally:
        for handler in root_logger.handlers[:]:
            handler.close()
            root_logger.removeHandler(handler)
        for handler in saved_handlers:
            root_logger.addHandler(handler)

    assert len(saved) == 1
    assert saved[0].output_folder == str(tmp_path / "out")
    assert saved[0].convert_timeout == 90.0
    assert saved[0].recursive is False

import logging
from types import SimpleNamespace

import pytest

from rss_fetch import cli
from rss_fetch.config import AppConfig
from rss_fetch.storage import MemoryStorage


@pytest.fixture
def quiet_cli(monkeypatch):
    """Skip logging setup and share one in-memory storage across commands."""
    storage = MemoryStorage()
    monkeypatch.setattr(cli, "configure_logging", lambda level, log_file=None: None)
    monkeypatch.setattr(cli, "open_storage", lambda config: storage)
    monkeypatch.delenv("PORT", raising=False)
    return storage


def test_configure_logging_defaults_to_console_only():
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        cli.configure_logging("INFO")

        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.StreamHandler) for handler in handlers)
        assert not any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_with_log_file_creates_file_handler(tmp_path):
    original_handlers = list(logging.getLogger().handlers)
    for handler in logging.getLogger().handlers[:]:
        logging.getLogger().removeHandler(handler)

    try:
        log_path = tmp_path / "nested" / "rss.log"
        cli.configure_logging("DEBUG", str(log_path))

        assert log_path.exists()
        handlers = logging.getLogger().handlers
        assert any(isinstance(handler, logging.FileHandler) for handler in handlers)
    finally:
        for handler in logging.getLogger().handlers[:]:
            logging.getLogger().removeHandler(handler)
            handler.close()
        for handler in original_handlers:
            logging.getLogger().addHandler(handler)


def test_configure_logging_rejects_unknown_level():
    with pytest.raises(ValueError):
        cli.configure_logging("LOUD")


def test_saved_commands(quiet_cli, capsys):
    assert cli.main(["saved", "add", "https://example.com/a.xml"]) == 0
    assert cli.main(["saved", "add", "https://example.com/b.xml"]) == 0
    assert cli.main(["saved", "add", "https://example.com/a.xml"]) == 1
    assert cli.main(["saved", "remove", "https://example.com/b.xml"]) == 0
    capsys.readouterr()

    assert cli.main(["saved", "list"]) == 0

    assert capsys.readouterr().out.splitlines() == ["https://example.com/a.xml"]


def test_theme_commands(quiet_cli, capsys):
    cli.main(["theme", "dark"])
    cli.main(["theme", "toggle"])
    capsys.readouterr()

    cli.main(["theme"])

    assert capsys.readouterr().out.strip() == "light"


def test_serve_applies_overrides_and_runs_app(quiet_cli, monkeypatch):
    captured = {}

    def fake_create_app(config):
        captured["config"] = config
        return SimpleNamespace(
            run=lambda host, port: captured.update(host=host, port=port)
        )

    monkeypatch.setattr(cli, "create_app", fake_create_app)

    assert cli.main(["serve", "--host", "0.0.0.0", "--port", "8081"]) == 0
    assert captured["host"] == "0.0.0.0"
    assert captured["port"] == 8081


def test_serve_uses_port_from_environment(quiet_cli, monkeypatch):
    captured = {}
    monkeypatch.setenv("PORT", "4321")
    monkeypatch.setattr(
        cli,
        "create_app",
        lambda config: SimpleNamespace(run=lambda host, port: captured.update(port=port)),
    )

    cli.main(["serve"])

    assert captured["port"] == 4321


def test_view_prints_text_and_reports_failure(quiet_cli, monkeypatch, capsys):
    class FakeViewer:
        def __init__(self, api_base, saved, theme):
            self.api_base = api_base

        def fetch(self, url):
            return None

        def to_text(self):
            return f"Error: could not load via {self.api_base}"

    monkeypatch.setattr(cli, "FeedViewer", FakeViewer)

    exit_code = cli.main(["view", "https://example.com/feed.xml"])

    assert exit_code == 1
    assert "via http://localhost:3000" in capsys.readouterr().out


def test_view_writes_html_file(quiet_cli, monkeypatch, tmp_path):
    class FakeViewer:
        def __init__(self, api_base, saved, theme):
            pass

        def fetch(self, url):
            return object()

        def to_html(self):
            return "<html>feed</html>"

    monkeypatch.setattr(cli, "FeedViewer", FakeViewer)
    target = tmp_path / "feed.html"

    exit_code = cli.main(
        ["view", "https://example.com/feed.xml", "--api-base", "http://proxy:1", "--html", str(target)]
    )

    assert exit_code == 0
    assert target.read_text(encoding="utf-8") == "<html>feed</html>"


def test_main_missing_config_returns_error(quiet_cli, tmp_path):
    assert cli.main(["--config", str(tmp_path / "nope.xml"), "theme"]) == 1


def test_open_storage_falls_back_to_memory(caplog):
    caplog.set_level("WARNING")

    storage = cli.open_storage(AppConfig(storage_url="not a database url"))

    assert isinstance(storage, MemoryStorage)
    assert "will not persist" in caplog.text

from collections.abc import Callable
from pathlib import Path

import pytest
from rich.console import Console

from tessera.cli import create_app


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A project directory with a templates folder and no user config."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(
        "tessera.config._load.get_user_config_path", lambda: tmp_path / "user.toml"
    )
    monkeypatch.delenv("TESSERA_DEBUG", raising=False)
    monkeypatch.delenv("TESSERA_LOG_LEVEL", raising=False)

    templates = tmp_path / "templates"
    (templates / "partials").mkdir(parents=True)
    _ = (templates / "greeting.html").write_text("Hello {name}!", encoding="utf-8")
    _ = (templates / "page.html").write_text(
        '{include "partials/header"}<main>{body}</main>', encoding="utf-8"
    )
    _ = (templates / "partials" / "header.html").write_text(
        "<h1>{title}</h1>", encoding="utf-8"
    )
    return tmp_path


@pytest.fixture
def tessera_cli(console: Console, project: Path) -> Callable[..., None]:
    """Create CLI app for testing.

    Returns a callable that runs the CLI and suppresses SystemExit.
    Use tessera_cli_with_exit_code when you need to check the exit code.
    """
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> None:
        try:
            app.meta(list(args))
        except SystemExit:
            pass

    return _run


@pytest.fixture
def tessera_cli_with_exit_code(console: Console, project: Path) -> Callable[..., int]:
    """Create CLI app for testing that returns the exit code."""
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run

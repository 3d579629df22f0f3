"""Shared test fixtures for Tessera tests."""

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pytest
import structlog
from rich.console import Console
from structlog.testing import CapturingLogger

from tessera.engine import TemplateEngine
from tessera.loaders import DictLoader, FileSystemLoader


@dataclass(frozen=True, slots=True)
class CapturedLog:
    """A structlog logger paired with the raw calls it received."""

    logger: structlog.typing.FilteringBoundLogger
    capture: CapturingLogger

    def events(self, method: str | None = None) -> list[str]:
        """Return the event names logged, optionally only for one level."""
        return [
            str(call.kwargs["event"])
            for call in self.capture.calls
            if method is None or call.method_name == method
        ]

    def calls_for(self, event: str) -> list[dict[str, object]]:
        """Return the keyword arguments of every call with the given event."""
        return [
            dict(call.kwargs) for call in self.capture.calls if call.kwargs["event"] == event
        ]


@pytest.fixture
def captured_log() -> CapturedLog:
    capture = CapturingLogger()
    logger = structlog.wrap_logger(
        capture,
        processors=[],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
    )
    return CapturedLog(logger=logger, capture=capture)


@pytest.fixture
def make_engine(captured_log: CapturedLog) -> Callable[..., TemplateEngine]:
    """Build engines that log into ``captured_log``.

    Keyword arguments are passed through to TemplateEngine. A ``templates``
    mapping is turned into a DictLoader.
    """

    def _make(
        templates: dict[str, str] | None = None, **kwargs: object
    ) -> TemplateEngine:
        loader = DictLoader(templates) if templates is not None else None
        return TemplateEngine(loader, logger=captured_log.logger, **kwargs)  # pyright: ignore[reportArgumentType]

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., TemplateEngine]) -> TemplateEngine:
    return make_engine()


@pytest.fixture
def template_dir(tmp_path: Path) -> Path:
    """Create a directory of templates.

    Structure:
        tmp_path/templates/
            page.html              # includes the header partial
            partials/header.html
            greeting.html
    """
    root = tmp_path / "templates"
    (root / "partials").mkdir(parents=True)
    (root / "page.html").write_text(
        '{include "partials/header"}<main>{body}</main>', encoding="utf-8"
    )
    (root / "partials" / "header.html").write_text(
        "<h1>{title}</h1>", encoding="utf-8"
    )
    (root / "greeting.html").write_text("Hello {name}!", encoding="utf-8")
    return root


@pytest.fixture
def file_loader(template_dir: Path) -> FileSystemLoader:
    return FileSystemLoader([template_dir])


@pytest.fixture
def console() -> Console:
    return Console(
        width=70,
        force_terminal=True,
        highlight=False,
        color_system=None,
        legacy_windows=False,
    )

"""Template loaders backed by jinja2 loaders.

jinja2 provides template-name sanitising (no ``..`` traversal out of a search
path), encoding handling and up-to-date checks. Loaded sources are cached per
template name and reloaded when the underlying source changes.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from threading import Lock

import jinja2

from tessera.exceptions import TemplateNotFoundError

DEFAULT_EXTENSION = "html"


@dataclass(frozen=True, slots=True)
class _CachedSource:
    source: str
    filename: str | None
    uptodate: Callable[[], bool] | None

    def is_current(self) -> bool:
        return self.uptodate is None or self.uptodate()


class _JinjaLoader:
    """Shared caching logic over a jinja2 loader."""

    def __init__(self, loader: jinja2.BaseLoader) -> None:
        self._loader: jinja2.BaseLoader = loader
        # get_source needs an environment; nothing is rendered through it.
        self._environment: jinja2.Environment = jinja2.Environment(
            loader=loader,
            autoescape=False,  # noqa: S701
        )
        self._cache: dict[str, _CachedSource] = {}
        self._lock: Lock = Lock()

    def _resolve_name(self, name: str) -> str:
        return name

    def _fetch(self, name: str) -> _CachedSource:
        resolved = self._resolve_name(name)
        with self._lock:
            cached = self._cache.get(resolved)
        if cached is not None and cached.is_current():
            return cached

        try:
            source, filename, uptodate = self._loader.get_source(
                self._environment, resolved
            )
        except jinja2.TemplateNotFound as e:
            msg = f"Template '{name}' not found"
            raise TemplateNotFoundError(msg, name=name) from e

        entry = _CachedSource(source=source, filename=filename, uptodate=uptodate)
        with self._lock:
            self._cache[resolved] = entry
        return entry

    def exists(self, name: str) -> bool:
        """Check whether a template can be loaded."""
        try:
            _ = self._fetch(name)
        except TemplateNotFoundError:
            return False
        return True

    def load(self, name: str) -> str:
        """Load the source text of a template.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            OSError: If the template file cannot be read.
            UnicodeDecodeError: If the file is not valid in the loader encoding.
        """
        return self._fetch(name).source

    def filename(self, name: str) -> str | None:
        """Return the file the template was loaded from, if any.

        Raises:
            TemplateNotFoundError: If the template does not exist.
        """
        return self._fetch(name).filename

    def clear_cache(self) -> None:
        """Forget all cached sources."""
        with self._lock:
            self._cache.clear()


class FileSystemLoader(_JinjaLoader):
    """Load templates from an ordered list of directories.

    A template name maps to ``<directory>/<name>.<extension>``; the first
    directory containing the file wins. Names may use ``/`` for
    subdirectories but cannot climb out of a search path.

    Example:
        >>> loader = FileSystemLoader(["views"], extension="html")
        >>> loader.load("partials/header")  # reads views/partials/header.html
    """

    def __init__(
        self,
        search_paths: str | Path | Sequence[str | Path],
        *,
        extension: str = DEFAULT_EXTENSION,
        encoding: str = "utf-8",
    ) -> None:
        if isinstance(search_paths, str | Path):
            search_paths = [search_paths]
        self.search_paths: tuple[Path, ...] = tuple(Path(p) for p in search_paths)
        self.extension: str = extension.lstrip(".")
        self.encoding: str = encoding
        super().__init__(
            jinja2.FileSystemLoader(
                [str(p) for p in self.search_paths], encoding=encoding
            )
        )

    def _resolve_name(self, name: str) -> str:
        if not self.extension or name.endswith(f".{self.extension}"):
            return name
        return f"{name}.{self.extension}"

    def __repr__(self) -> str:
        paths = ", ".join(str(p) for p in self.search_paths)
        return f"FileSystemLoader([{paths}], extension={self.extension!r})"


class DictLoader(_JinjaLoader):
    """Load templates from an in-memory mapping of name to source.

    The mapping is copied; later changes by the caller are not seen.
    """

    def __init__(self, mapping: Mapping[str, str]) -> None:
        self.mapping: dict[str, str] = dict(mapping)
        super().__init__(jinja2.DictLoader(self.mapping))

    def __repr__(self) -> str:
        return f"DictLoader({sorted(self.mapping)!r})"

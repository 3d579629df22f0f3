"""Template loader protocol.

Loaders own template sources. The engine only asks them whether a template
exists and for its text; where sources come from and how they are cached is
up to the loader.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class TemplateLoader(Protocol):
    """Protocol for template sources.

    Example:
        >>> def render_page(loader: TemplateLoader, name: str) -> str:
        ...     return loader.load(name) if loader.exists(name) else ""
    """

    def exists(self, name: str) -> bool:
        """Check whether a template can be loaded.

        Args:
            name: Template name as written in an include tag.

        Returns:
            True if ``load(name)`` would succeed.
        """
        ...

    def load(self, name: str) -> str:
        """Load the source text of a template.

        Args:
            name: Template name as written in an include tag.

        Returns:
            The template source.

        Raises:
            TemplateNotFoundError: If the template does not exist.
            OSError: If the template exists but cannot be read.
        """
        ...

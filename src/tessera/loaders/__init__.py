"""Template loaders."""

from ._loaders import DEFAULT_EXTENSION, DictLoader, FileSystemLoader
from ._protocol import TemplateLoader

__all__ = [
    "DEFAULT_EXTENSION",
    "DictLoader",
    "FileSystemLoader",
    "TemplateLoader",
]

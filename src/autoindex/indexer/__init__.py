"""
Módulo indexer — Generación de listados de directorio.

Recorre el árbol, cachea los metadatos del sistema de archivos y renderiza
una página index.html por directorio a partir de una plantilla.
"""

from .builder import (
    BuildOptions,
    IndexBuilder,
    OverrideFileError,
    build_index,
    find_manual_indexes,
    pretty_size,
)
from .cache import FsCache, clear_caches, default_cache
from .readme import neutralize_schemes, sanitize_readme
from .template import GENERATED_MARKER, VERSION, load_template
from .tree import FileEntry, walk

__all__ = [
    "BuildOptions",
    "IndexBuilder",
    "OverrideFileError",
    "build_index",
    "find_manual_indexes",
    "pretty_size",
    "FsCache",
    "clear_caches",
    "default_cache",
    "neutralize_schemes",
    "sanitize_readme",
    "GENERATED_MARKER",
    "VERSION",
    "load_template",
    "FileEntry",
    "walk",
]

"""
Recorrido recursivo del árbol de archivos.

Enumera el árbol de forma ansiosa (no perezosa) en una lista plana de
entradas marcadas como archivo o directorio. Lo usa el modo ``build`` para
saber qué directorios necesitan un listado.

El orden es en profundidad y en preorden: un directorio aparece antes que
sus descendientes. No hay detección de ciclos; los errores del SO se
propagan al llamador.
"""

import os
from dataclasses import dataclass

from .cache import FsCache, default_cache


@dataclass(frozen=True)
class FileEntry:
    """Una entrada del árbol recorrido."""

    path: str
    is_directory: bool


def walk(root: str, cache: FsCache | None = None) -> list[FileEntry]:
    """Recorre ``root`` y devuelve todas sus entradas (sin incluir ``root``).

    Args:
        root: Directorio raíz del recorrido
        cache: Caché de metadatos; por defecto la del proceso

    Returns:
        Lista de FileEntry en preorden
    """
    if cache is None:
        cache = default_cache
    entries: list[FileEntry] = []
    _walk_into(str(root), cache, entries)
    return entries


def _walk_into(directory: str, cache: FsCache, out: list[FileEntry]) -> None:
    for name in cache.listdir(directory):
        path = os.path.join(directory, name)
        if cache.is_dir(path):
            out.append(FileEntry(path, True))
            _walk_into(path, cache, out)
        else:
            out.append(FileEntry(path, False))

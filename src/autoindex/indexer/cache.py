"""
Caché en memoria de metadatos del sistema de archivos.

Memoiza las llamadas a ``os.stat`` y ``os.listdir`` durante la vida del
proceso (o hasta llamar a ``clear()``). Una vez poblada una clave, su valor
no se refresca: la obsolescencia está acotada por limpiezas periódicas
externas (ver ``autoindex.server.expiry``).

Uso típico:
    cache = FsCache()
    names = cache.listdir("/srv/files")
    st = cache.stat("/srv/files/readme.txt")
    ...
    cache.clear()
"""

import os
import stat as stat_mod

import structlog

logger = structlog.get_logger()


class FsCache:
    """Caché de ``stat`` y ``listdir`` indexada por ruta absoluta.

    Los resultados negativos (rutas inexistentes) no se guardan: la
    siguiente llamada vuelve a consultar el sistema de archivos.
    """

    def __init__(self) -> None:
        self._stats: dict[str, os.stat_result] = {}
        self._entries: dict[str, list[str]] = {}

    def stat(self, path: str) -> os.stat_result:
        """Devuelve el ``stat`` de una ruta, consultando el SO solo la primera vez.

        Raises:
            FileNotFoundError: Si la ruta no existe
            OSError: Cualquier otro error del SO, sin capturar
        """
        key = os.path.abspath(path)
        cached = self._stats.get(key)
        if cached is None:
            cached = os.stat(key)
            self._stats[key] = cached
        return cached

    def listdir(self, path: str) -> list[str]:
        """Devuelve los nombres de un directorio, ordenados."""
        key = os.path.abspath(path)
        cached = self._entries.get(key)
        if cached is None:
            cached = sorted(os.listdir(key))
            self._entries[key] = cached
        return cached

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except FileNotFoundError:
            return False
        return True

    def is_dir(self, path: str) -> bool:
        try:
            return stat_mod.S_ISDIR(self.stat(path).st_mode)
        except FileNotFoundError:
            return False

    def clear(self) -> None:
        """Vacía ambas tablas de una sola vez."""
        stats, entries = len(self._stats), len(self._entries)
        self._stats, self._entries = {}, {}
        logger.debug("fs_cache.cleared", stats=stats, entries=entries)

    def __len__(self) -> int:
        return len(self._stats) + len(self._entries)


# Caché por defecto del proceso, compartida por build_index() y walk()
# cuando el llamador no inyecta una propia.
default_cache = FsCache()


def clear_caches() -> None:
    """Limpia la caché por defecto del proceso."""
    default_cache.clear()

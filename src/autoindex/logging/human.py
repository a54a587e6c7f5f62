"""
Human Log — Formatter y helper para logs de progreso legibles.

Produce salida corta y clara para quien ejecuta la CLI: qué índices se
escriben, cuáles se saltan y dónde escucha el servidor.

Formato de ejemplo:
    ✎ docs/index.html
    · docs/manual/ (manual index, left alone)
    ✗ broken/: Invalid override file broken/indexoverwrite.json: ...

    ⚡ 12 indexes written, 1 skipped, 1 failed
"""

import logging
import sys

from .levels import HUMAN


class HumanFormatter:
    """Formateador de eventos de progreso.

    Convierte eventos estructurados a texto legible con formato consistente.
    Cada tipo de evento tiene su formato propio.
    """

    def format_event(self, event: str, **kw) -> str | None:
        """Formatea un evento a texto legible.

        Args:
            event: Nombre del evento (ej: "index.written")
            **kw: Parámetros del evento

        Returns:
            Texto formateado o None si el evento no tiene formato definido
        """
        match event:

            # ── BUILD ────────────────────────────────────────────────────
            case "index.written":
                return f"  ✎ {kw.get('path', '?')}"

            case "index.skipped":
                return f"  · {kw.get('dir', '?')} (manual index, left alone)"

            case "build.dir_failed":
                return f"  ✗ {kw.get('dir', '?')}: {kw.get('error', 'unknown')}"

            case "build.complete":
                written = kw.get("written", 0)
                skipped = kw.get("skipped", 0)
                failed = kw.get("failed", 0)
                summary = f"{written} indexes written, {skipped} skipped"
                if failed:
                    return f"\n⚡ {summary}, {failed} failed"
                return f"\n✓ {summary}"

            # ── SERVE ────────────────────────────────────────────────────
            case "serve.listening":
                urls = kw.get("urls", [])
                lines = [f"Serving {kw.get('root', '?')}", ""]
                lines += [f"  - {url}" for url in urls]
                return "\n".join(lines) + "\n"

            case _:
                return None


class HumanLogHandler(logging.Handler):
    """Handler de logging que filtra eventos HUMAN y los formatea.

    Solo procesa registros de nivel HUMAN (25). El resto los ignora.
    Escribe a stderr para no romper pipes stdout.
    """

    def __init__(self, stream=None) -> None:
        super().__init__(level=HUMAN)
        self.stream = stream or sys.stderr
        self.formatter_inst = HumanFormatter()

    def emit(self, record: logging.LogRecord) -> None:
        try:
            if record.levelno != HUMAN:
                return

            # structlog (wrap_for_formatter) deja el event dict en record.msg
            if isinstance(record.msg, dict):
                kw = dict(record.msg)
                event = kw.pop("event", "")
            else:
                kw = {}
                event = record.getMessage()

            formatted = self.formatter_inst.format_event(event, **kw)
            if formatted is not None:
                self.stream.write(formatted + "\n")
                self.stream.flush()
        except Exception:
            self.handleError(record)


class HumanLog:
    """Helper tipado para emitir logs de nivel HUMAN desde el código.

    En lugar de llamar log.log(HUMAN, "event", ...) directamente,
    usa métodos con nombres semánticos claros.

    Uso:
        hlog = HumanLog(structlog.get_logger())
        hlog.index_written("docs/index.html")
        hlog.build_complete(written=3, skipped=0, failed=0)
    """

    def __init__(self, logger) -> None:
        self._log = logger

    def index_written(self, path: str) -> None:
        self._log.log(HUMAN, "index.written", path=path)

    def index_skipped(self, directory: str) -> None:
        self._log.log(HUMAN, "index.skipped", dir=directory)

    def dir_failed(self, directory: str, error: str) -> None:
        self._log.log(HUMAN, "build.dir_failed", dir=directory, error=error)

    def build_complete(self, written: int, skipped: int, failed: int) -> None:
        self._log.log(
            HUMAN, "build.complete",
            written=written,
            skipped=skipped,
            failed=failed,
        )

    def listening(self, root: str, urls: list[str]) -> None:
        self._log.log(HUMAN, "serve.listening", root=root, urls=urls)

"""
HUMAN logging level -- readable progress output.

Custom level between INFO (20) and WARNING (30).
Does not indicate severity -- it marks the events a user running the CLI
wants to see (index written, directory skipped, server listening) without
technical noise.

Hierarchy:
    debug  (10) -> cache clears, skipped entries, request details
    info   (20) -> configuration loaded, listings served
    human  (25) -> * what the tool does: pages written, server address
    warn   (30) -> non-fatal problems (an entry's size could not be read)
    error  (40) -> a directory could not be listed
"""

import logging

import structlog

# Custom level: between INFO (20) and WARNING (30)
HUMAN = 25
logging.addLevelName(HUMAN, "HUMAN")


# structlog proxies .log(HUMAN, ...) to a method named after the level,
# so stdlib loggers need a .human() method
def _human_method(self, message, *args, **kwargs):
    if self.isEnabledFor(HUMAN):
        self._log(HUMAN, message, args, **kwargs)


logging.Logger.human = _human_method

# Register the level in structlog to avoid KeyError: 25. The tables were
# renamed across structlog releases (_LEVEL_TO_NAME -> LEVEL_TO_NAME).
for _module in (structlog.stdlib, getattr(structlog, "_log_levels", None)):
    for _suffix in ("LEVEL_TO_NAME", "NAME_TO_LEVEL"):
        for _attr in (_suffix, f"_{_suffix}"):
            _table = getattr(_module, _attr, None)
            if not isinstance(_table, dict):
                continue
            if _suffix == "LEVEL_TO_NAME":
                _table[HUMAN] = "human"
            else:
                _table["human"] = HUMAN

# Same for structlog's default PrintLogger, used before configure_logging()
if not hasattr(structlog.PrintLogger, "human"):
    structlog.PrintLogger.human = structlog.PrintLogger.msg

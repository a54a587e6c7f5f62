"""
Listing template loading.

The default template ships next to this module. Templates are plain strings
with placeholder tokens; the builder never mutates them and returns a new
string per listing.
"""

import re
import sys
from functools import lru_cache
from pathlib import Path

from .. import __version__

DEFAULT_TEMPLATE_PATH = Path(__file__).parent / "template.html"

# Marker written into generated pages; an index.html without it is treated
# as hand-authored and never overwritten.
GENERATED_MARKER = "<!--!GENERATED_INDEX!-->"

VERSION = f"autoindex/{__version__} ({sys.platform or 'unknown'})"

VERSION_COMMENT_TOKEN = "%versioncomment%"
IMG_TOKEN = "<!--%img%-->"
BEGIN_FILES_TOKEN = "%begin_files%"
END_FILES_TOKEN = "%end_files%"


def load_template(path: Path | str | None = None) -> str:
    """Load a listing template and stamp the version comment into it.

    Args:
        path: Custom template file; None for the bundled default

    Raises:
        OSError: If the template cannot be read
    """
    if path is None:
        return default_template()
    return _stamp(Path(path).read_text(encoding="utf-8"))


@lru_cache(maxsize=1)
def default_template() -> str:
    return _stamp(DEFAULT_TEMPLATE_PATH.read_text(encoding="utf-8"))


def _stamp(template: str) -> str:
    return _replace_token_ci(template, VERSION_COMMENT_TOKEN, f"<!--{VERSION}-->")


def _replace_token_ci(text: str, token: str, replacement: str) -> str:
    return re.sub(re.escape(token), lambda _m: replacement, text, flags=re.IGNORECASE)

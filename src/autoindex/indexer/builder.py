"""
Index builder: renders the listing page for one directory.

Given a directory and the serving root, the builder decides whether a
listing should be generated, gathers the entries (or reads an override
file), orders and formats them into a fixed-width table, embeds an optional
sanitized README and substitutes everything into the template.

Typical usage:
    builder = IndexBuilder()
    html = builder.build("/srv/files/docs", "/srv/files")
    if html is not None:
        Path("/srv/files/docs/index.html").write_text(html)
"""

import html
import json
import locale
import os
import re
import stat as stat_mod
from dataclasses import dataclass, field
from datetime import datetime
from urllib.parse import quote, urlsplit

import json5
import structlog

from .cache import FsCache, default_cache
from .readme import find_readme, neutralize_schemes, sanitize_readme
from .template import (
    BEGIN_FILES_TOKEN,
    END_FILES_TOKEN,
    GENERATED_MARKER,
    IMG_TOKEN,
    load_template,
)

logger = structlog.get_logger()

MANUAL_INDEX_NAMES: frozenset[str] = frozenset({"index.txt", "index.md", "index"})
OVERRIDE_FILES: tuple[str, ...] = ("indexoverwrite.json", "indexoverwrite.json5")
NOFILES_NAME = ".nofiles"
SOCIAL_CARD_NAME = "social-card.png"

# Column layout
MIN_NAME_WIDTH = 51
MAX_NAME_WIDTH = 60
DATE_WIDTH = 30
ELLIPSIS = "..."

_SIZE_UNITS: tuple[str, ...] = ("KB", "MB", "GB", "TB")

_SUBSTITUTION_RE = re.compile(r"%location%|%files%|%README%", re.IGNORECASE)

_SOCIAL_CARD_META = (
    '<meta name="og:image" content="{url}">'
    '<meta name="twitter:image" content="{url}">'
    '<meta name="image" content="{url}">'
    '<meta name="og:card" content="summary_large_image">'
    '<meta name="twitter:card" content="summary_large_image">'
    '<meta name="card" content="summary_large_image">'
)


class OverrideFileError(ValueError):
    """An ``indexoverwrite.json[5]`` file could not be used."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid override file {path}: {reason}")


@dataclass(frozen=True)
class BuildOptions:
    """Per-caller switches for listing generation."""

    embed_readme: bool = True
    allow_nofiles: bool = True
    exclude: tuple[str, ...] = (".git", ".gitkeep")


@dataclass
class DirectoryListing:
    """Display name -> href target, plus whether the order was hand-declared."""

    entries: dict[str, str] = field(default_factory=dict)
    custom: bool = False


def pretty_size(size: int) -> str:
    """Human-readable size: ``0 B``, ``1.50 KB``, ``1.00 TB``..."""
    if size < 1024:
        return f"{size} B"
    value = float(size)
    for unit in _SIZE_UNITS:
        value /= 1024
        if value < 1024 or unit == _SIZE_UNITS[-1]:
            return f"{value:.2f} {unit}"
    raise AssertionError("unreachable")


def find_manual_indexes(directory: str, cache: FsCache | None = None) -> list[str]:
    """Return the hand-authored index files present in ``directory``.

    ``index.txt``, ``index.md`` and ``index`` always count; ``index.html``
    counts only when it lacks the generator marker.
    """
    if cache is None:
        cache = default_cache
    found: list[str] = []
    for name in cache.listdir(directory):
        if name == "index.html":
            path = os.path.join(directory, name)
            if cache.is_dir(path):
                continue
            # Bytes: hand-written pages need not be UTF-8
            with open(path, "rb") as f:
                content = f.read()
            if GENERATED_MARKER.encode() not in content:
                found.append(name)
        elif name in MANUAL_INDEX_NAMES:
            found.append(name)
    return found


class IndexBuilder:
    """Builds listing pages.

    The builder owns (or is given) the filesystem cache it reads through, so
    a server can expire that cache on its own schedule and tests can hand in
    a fresh one.
    """

    def __init__(
        self,
        template: str | None = None,
        options: BuildOptions | None = None,
        cache: FsCache | None = None,
    ) -> None:
        self.template = template if template is not None else load_template()
        self.options = options or BuildOptions()
        self.cache = cache if cache is not None else default_cache
        self._log = logger.bind(component="index_builder")

    def build(self, directory: str, root: str) -> str | None:
        """Render the listing for ``directory``, or None if it has its own index.

        Args:
            directory: Directory to list
            root: Serving root, used for the location and social-card URL

        Raises:
            OverrideFileError: Malformed override file
            OSError: Unreadable README, override file or directory
        """
        directory = os.path.abspath(directory)
        root = os.path.abspath(root)

        manual = find_manual_indexes(directory, self.cache)
        if manual:
            self._log.debug("builder.skip_manual_index", dir=directory, found=manual)
            return None

        listing = self._collect(directory)
        rows = self._format_rows(directory, listing)
        readme = self._readme(directory)

        page = self._social_card(self.template, directory, root)
        page = self._files_region(page, directory)

        relative = os.path.relpath(directory, root)
        location = "" if relative == "." else html.escape(relative.replace(os.sep, "/") + "/")
        values = {"%location%": location, "%files%": rows.strip(), "%readme%": readme}
        page = _SUBSTITUTION_RE.sub(lambda m: values[m.group(0).lower()], page)

        return neutralize_schemes(page)

    # --- Entries ---

    def _collect(self, directory: str) -> DirectoryListing:
        names = self.cache.listdir(directory)
        for override in OVERRIDE_FILES:
            if override in names:
                return self._read_override(os.path.join(directory, override))

        listing = DirectoryListing()
        for name in names:
            if name in self.options.exclude:
                continue
            if self.cache.is_dir(os.path.join(directory, name)):
                name = f"{name}/"
            listing.entries[name] = name
        return listing

    def _read_override(self, path: str) -> DirectoryListing:
        raw = _read_text(path)
        try:
            data = json5.loads(raw) if path.endswith(".json5") else json.loads(raw)
        except ValueError as e:
            raise OverrideFileError(path, str(e)) from e

        listing = DirectoryListing(custom=True)
        if isinstance(data, list):
            for name in data:
                if not isinstance(name, str):
                    raise OverrideFileError(path, f"entry {name!r} is not a string")
                listing.entries[name] = name
        elif isinstance(data, dict):
            for name, value in data.items():
                if value is True:
                    listing.entries[name] = name
                elif value is False:
                    continue
                elif isinstance(value, str):
                    listing.entries[name] = value
                else:
                    raise OverrideFileError(
                        path, f"value for {name!r} must be a boolean or a string"
                    )
        else:
            raise OverrideFileError(path, "expected an array or an object")
        return listing

    def _ordered(self, listing: DirectoryListing) -> list[str]:
        """Single ordering strategy; custom listings get a constant key."""
        if listing.custom:
            key = _declared_order
        else:
            key = _directories_first
        return sorted(listing.entries, key=key)

    # --- Rows ---

    def _format_rows(self, directory: str, listing: DirectoryListing) -> str:
        names = self._ordered(listing)
        longest = max((len(name) + 1 for name in names), default=0)
        width = min(max(MIN_NAME_WIDTH, longest), MAX_NAME_WIDTH)

        rows: list[str] = []
        for name in names:
            target = listing.entries[name]
            display = name
            if len(display) + 1 > width:
                display = display[: width - 1 - len(ELLIPSIS)] + ELLIPSIS
            date_str, size = self._columns(directory, name, target)
            rows.append(
                f'<a href="{_href(target)}">{html.escape(display)}</a>'
                f"{' ' * (width - len(display))}"
                f"{date_str}{' ' * (DATE_WIDTH - len(date_str))}"
                f"{size}\n"
            )
        return "".join(rows)

    def _columns(self, directory: str, name: str, target: str) -> tuple[str, str]:
        path = os.path.join(directory, target)
        try:
            st = self.cache.stat(path)
        except FileNotFoundError:
            # Listed by an override file but absent on disk
            return _format_date(0), "-"
        except OSError as e:
            self._log.warning("builder.stat_failed", path=path, error=str(e))
            return _format_date(0), "-"

        date_str = _format_date(st.st_mtime)
        if name.endswith("/") or stat_mod.S_ISDIR(st.st_mode):
            return date_str, "-"
        try:
            return date_str, pretty_size(st.st_size)
        except (TypeError, ValueError) as e:
            self._log.warning("builder.size_failed", path=path, error=str(e))
            return date_str, "-"

    # --- Template regions ---

    def _readme(self, directory: str) -> str:
        if not self.options.embed_readme:
            return ""
        files = [
            name for name in self.cache.listdir(directory)
            if not self.cache.is_dir(os.path.join(directory, name))
        ]
        name = find_readme(files)
        if name is None:
            return ""
        text = _read_text(os.path.join(directory, name))
        return sanitize_readme(text, is_html=name.lower().endswith(".html"))

    def _social_card(self, page: str, directory: str, root: str) -> str:
        meta = ""
        for base in (directory, root):
            card = os.path.join(base, SOCIAL_CARD_NAME)
            if self.cache.exists(card):
                rel = os.path.relpath(card, root).replace(os.sep, "/")
                meta = _SOCIAL_CARD_META.format(url=html.escape("/" + quote(rel)))
                break
        return page.replace(IMG_TOKEN, meta)

    def _files_region(self, page: str, directory: str) -> str:
        nofiles = os.path.join(directory, NOFILES_NAME)
        if self.options.allow_nofiles and self.cache.exists(nofiles):
            start = page.find(BEGIN_FILES_TOKEN)
            end = page.find(END_FILES_TOKEN, start)
            if start != -1 and end != -1:
                block = _read_text(nofiles).strip()
                return page[:start] + block + page[end + len(END_FILES_TOKEN):]
        return page.replace(BEGIN_FILES_TOKEN, "").replace(END_FILES_TOKEN, "")


def build_index(
    directory: str,
    root: str,
    template: str | None = None,
    options: BuildOptions | None = None,
    cache: FsCache | None = None,
) -> str | None:
    """Functional shortcut for ``IndexBuilder(...).build(directory, root)``."""
    return IndexBuilder(template, options, cache).build(directory, root)


def _directories_first(name: str) -> tuple[bool, str]:
    return (not name.endswith("/"), locale.strxfrm(name))


def _declared_order(name: str) -> int:
    return 0


def _format_date(timestamp: float) -> str:
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


def _href(target: str) -> str:
    """Quote a link target; absolute http(s) URLs are kept as written."""
    if urlsplit(target).scheme.lower() in ("http", "https"):
        return html.escape(target)
    return html.escape(quote(target, safe="/~"))


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()

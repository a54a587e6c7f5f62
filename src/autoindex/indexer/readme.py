"""
README embedding: scheme neutralisation, autolinking and HTML sanitization.

The README of a directory is operator-supplied but may come from anywhere
(uploaded archives, cloned repos), so it goes through three steps before it
is placed in a listing:

1. ``neutralize_schemes`` rewrites the colon of ``javascript:``, ``data:``
   and ``vbscript:`` to ``&colon;``, repeating until the text stops changing.
2. Bare ``<http(s)://...>`` references are turned into links.
3. ``nh3`` cleans the result against a strict allow-list. Only ``http`` and
   ``https`` URLs survive, and ``style`` attributes keep only declarations
   whose property and value match the patterns below.

HTML READMEs are allowed inline ``style`` on headings, containers and
anchors. Plain-text READMEs are wrapped in ``<pre>``.
"""

import re

import nh3
import structlog

logger = structlog.get_logger()

# Candidate file names, in priority order (matched case-insensitively)
README_NAMES: tuple[str, ...] = ("readme.html", "readme.txt", "readme")

DANGEROUS_SCHEMES: tuple[str, ...] = ("javascript", "data", "vbscript")

# Upper bound for the fixed-point loop; each pass strictly shortens the set
# of matches, so real input converges in one or two passes.
MAX_NEUTRALIZE_PASSES = 16

# Scheme letters may be separated by whitespace or control characters,
# which browsers strip when parsing URLs.
_GAP = r"[\s\x00-\x1f]*"
_SCHEME_RE = re.compile(
    r"(?<![\w-])("
    + "|".join(_GAP.join(re.escape(ch) for ch in scheme) for scheme in DANGEROUS_SCHEMES)
    + r")" + _GAP + r":",
    re.IGNORECASE,
)

_AUTOLINK_RE = re.compile(r"<(https?://[^\s<>\"']+)>", re.IGNORECASE)

# --- Allow-list ---

TEXT_TAGS: frozenset[str] = frozenset({
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr", "pre", "code", "kbd", "samp", "blockquote",
    "ul", "ol", "li", "dl", "dt", "dd",
    "strong", "b", "em", "i", "u", "s", "del", "ins", "sub", "sup",
    "small", "mark", "abbr", "span", "div", "section", "article",
    "table", "thead", "tbody", "tfoot", "tr", "th", "td", "caption",
    "details", "summary", "figure", "figcaption",
    "a", "img",
})

SVG_TAGS: frozenset[str] = frozenset({
    "svg", "g", "path", "circle", "ellipse", "rect", "line",
    "polyline", "polygon", "text", "tspan",
})

_SVG_PRESENTATION = {"fill", "stroke", "stroke-width", "transform", "opacity"}

BASE_ATTRIBUTES: dict[str, set[str]] = {
    "a": {"href", "title"},
    "img": {"src", "alt", "title", "width", "height"},
    "abbr": {"title"},
    "td": {"colspan", "rowspan", "align"},
    "th": {"colspan", "rowspan", "align"},
    "ol": {"start"},
    "span": {"style"},
    "code": {"style"},
    "svg": {"width", "height", "viewBox", "viewbox", "xmlns"} | _SVG_PRESENTATION,
    "g": set(_SVG_PRESENTATION),
    "path": {"d"} | _SVG_PRESENTATION,
    "circle": {"cx", "cy", "r"} | _SVG_PRESENTATION,
    "ellipse": {"cx", "cy", "rx", "ry"} | _SVG_PRESENTATION,
    "rect": {"x", "y", "width", "height", "rx", "ry"} | _SVG_PRESENTATION,
    "line": {"x1", "y1", "x2", "y2"} | _SVG_PRESENTATION,
    "polyline": {"points"} | _SVG_PRESENTATION,
    "polygon": {"points"} | _SVG_PRESENTATION,
    "text": {"x", "y", "font-size", "text-anchor"} | _SVG_PRESENTATION,
    "tspan": {"x", "y", "dx", "dy"} | _SVG_PRESENTATION,
}

# Extra ``style`` allowance for HTML READMEs
HTML_STYLED_TAGS: tuple[str, ...] = (
    "h1", "h2", "h3", "h4", "h5", "h6",
    "div", "p", "section", "article", "a", "img", "table", "td", "th",
)

ALLOWED_STYLE_PROPERTIES: frozenset[str] = frozenset({
    "color", "background-color",
    "text-align", "font-weight", "font-style", "font-size",
    "text-decoration", "margin", "margin-top", "margin-bottom",
    "padding", "width", "height", "max-width", "display",
})

_NUMERIC = r"-?\d+(\.\d+)?(px|em|rem|%|pt|vh|vw)?"
_COLOR = r"#[0-9a-f]{3,8}|rgba?\(\s*\d{1,3}\s*(,\s*[\d.]+\s*){2,3}\)|[a-z]+"
_STYLE_VALUE_RE = re.compile(
    rf"^(({_NUMERIC})(\s+({_NUMERIC}))*|{_COLOR})$",
    re.IGNORECASE,
)


def neutralize_schemes(text: str) -> str:
    """Rewrite dangerous URI schemes until the text reaches a fixed point.

    ``javascript:alert(1)`` becomes ``javascript&colon;alert(1)``.
    """
    for _ in range(MAX_NEUTRALIZE_PASSES):
        rewritten = _SCHEME_RE.sub(lambda m: m.group(1) + "&colon;", text)
        if rewritten == text:
            return rewritten
        text = rewritten
    return text


def autolink(text: str) -> str:
    """Turn ``<https://example.com>`` into an anchor."""
    return _AUTOLINK_RE.sub(lambda m: f'<a href="{m.group(1)}">{m.group(1)}</a>', text)


def filter_style(value: str) -> str | None:
    """Keep only the declarations of a ``style`` value that pass the allow-list."""
    kept: list[str] = []
    for declaration in value.split(";"):
        prop, sep, raw = declaration.partition(":")
        if not sep:
            continue
        prop = prop.strip().lower()
        raw = raw.strip()
        if prop in ALLOWED_STYLE_PROPERTIES and _STYLE_VALUE_RE.match(raw):
            kept.append(f"{prop}: {raw}")
    return "; ".join(kept) or None


def _attribute_filter(tag: str, attr: str, value: str) -> str | None:
    if attr == "style":
        return filter_style(value)
    return value


def _attributes_for(is_html: bool) -> dict[str, set[str]]:
    attributes = {tag: set(attrs) for tag, attrs in BASE_ATTRIBUTES.items()}
    if is_html:
        for tag in HTML_STYLED_TAGS:
            attributes.setdefault(tag, set()).add("style")
    return attributes


def sanitize_readme(text: str, is_html: bool = False) -> str:
    """Prepare README contents for embedding in a listing.

    Args:
        text: Raw README contents
        is_html: True for ``README.html`` (wider attribute set, no ``<pre>``)

    Returns:
        Sanitized HTML fragment
    """
    prepared = autolink(neutralize_schemes(text))
    cleaned = nh3.clean(
        prepared,
        tags=set(TEXT_TAGS | SVG_TAGS),
        attributes=_attributes_for(is_html),
        attribute_filter=_attribute_filter,
        url_schemes={"http", "https"},
    )
    if is_html:
        return cleaned
    return f"<pre>{cleaned}</pre>"


def find_readme(names: list[str]) -> str | None:
    """Pick the README to embed from a directory's entry names."""
    by_lower = {}
    for name in names:
        by_lower.setdefault(name.lower(), name)
    for candidate in README_NAMES:
        if candidate in by_lower:
            return by_lower[candidate]
    return None

"""
Flask application for ``autoindex serve``.

Request flow:
1. Expire caches whose interval has elapsed.
2. Existing file → served as a static file.
3. Directory → redirect to the trailing-slash URL, then its own
   ``index.html`` if it has one, else a listing built on demand and kept in
   a short-lived page cache.
4. Anything else → 404 responder.

The app is meant to run single-threaded (``threaded=False``): the caches
are plain dicts mutated by request handlers.
"""

import os
import socket

import structlog
from flask import Flask, Response, redirect, request, send_from_directory
from werkzeug.security import safe_join

from ..indexer import FsCache, IndexBuilder
from ..indexer.template import VERSION
from .expiry import ExpiringClear
from .notfound import not_found

logger = structlog.get_logger()


def create_app(
    root: str,
    builder: IndexBuilder | None = None,
    fs_cache_ttl: float = 5.0,
    page_cache_ttl: float = 1.0,
    clock=None,
) -> Flask:
    """Build the Flask app serving ``root``.

    Args:
        root: Directory to serve
        builder: Listing builder; by default one with its own FsCache
        fs_cache_ttl: Seconds between clears of the builder's FsCache
        page_cache_ttl: Seconds between clears of the rendered page cache
        clock: Monotonic clock override, for tests
    """
    root = os.path.abspath(root)
    if builder is None:
        builder = IndexBuilder(cache=FsCache())

    app = Flask(__name__, static_folder=None)
    pages: dict[str, str] = {}
    log = logger.bind(component="server", root=root)

    expiry_kwargs = {"clock": clock} if clock is not None else {}
    expirations = [
        ExpiringClear("fs", fs_cache_ttl, builder.cache.clear, **expiry_kwargs),
        ExpiringClear("pages", page_cache_ttl, pages.clear, **expiry_kwargs),
    ]

    app.config["AUTOINDEX_ROOT"] = root
    app.config["AUTOINDEX_BUILDER"] = builder
    app.config["AUTOINDEX_PAGES"] = pages

    @app.before_request
    def _expire() -> None:
        for expiring in expirations:
            expiring.tick()

    @app.after_request
    def _powered_by(response: Response) -> Response:
        response.headers["X-Powered-By"] = VERSION
        return response

    @app.route("/", defaults={"subpath": ""})
    @app.route("/<path:subpath>")
    def serve(subpath: str) -> Response:
        target = safe_join(root, subpath) if subpath else root
        if target is None:
            log.info("server.unsafe_path", path=request.path)
            return not_found(request, root)

        # Dotfiles and dot-directories (.git, .env, ...) are never served
        if any(part.startswith(".") for part in subpath.split("/")):
            return not_found(request, root)

        if os.path.isfile(target):
            return send_from_directory(root, subpath)

        if not os.path.isdir(target):
            return not_found(request, root)

        if not request.path.endswith("/"):
            query = request.query_string.decode("latin-1")
            location = request.path + "/" + (f"?{query}" if query else "")
            return redirect(location, code=308)

        if os.path.isfile(os.path.join(target, "index.html")):
            return send_from_directory(target, "index.html")

        key = os.path.abspath(target)
        page = pages.get(key)
        if page is None:
            try:
                page = builder.build(key, root)
            except (OSError, ValueError) as e:
                log.error("server.listing_failed", dir=key, error=str(e))
                return Response(
                    "Failed to generate the directory listing.\n",
                    status=500,
                    mimetype="text/plain",
                )
            if page is None:
                return not_found(request, root)
            pages[key] = page
            log.info("server.listing_built", dir=key)

        return Response(page, status=200, mimetype="text/html")

    return app


def network_urls(port: int, host: str = "0.0.0.0") -> list[str]:
    """URLs a user can open to reach the server, local address first."""
    if host not in ("0.0.0.0", "::", ""):
        return [f"http://{host}:{port}/"]

    urls = [f"http://127.0.0.1:{port}/"]
    try:
        _, _, addresses = socket.gethostbyname_ex(socket.gethostname())
    except OSError:
        addresses = []
    for address in addresses:
        if not address.startswith("127."):
            urls.append(f"http://{address}:{port}/")
    return urls

"""
404 responder.

Order of preference:
1. ``<root>/404.html`` when the operator provides one.
2. Discord's link-preview bot gets a 200 with only meta tags, so the embed
   shows "404 - Not found" instead of an error.
3. Clients that accept HTML get a small HTML page.
4. Everyone else (curl, scripts) gets a plain-text box.
"""

import html
import os

from flask import Request, Response, send_from_directory

from ..indexer.template import VERSION

HTML_ACCEPT = ("text/html", "application/xhtml+xml", "*/*")

_PAGE = """<!DOCTYPE html>
<html lang="en">

<head>
  <meta charset="UTF-8">
  <meta http-equiv="X-UA-Compatible" content="IE=edge">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  {tags}
  <style>
    body {{
      background-color: #000;
      color: #fff;
      font-family: Arial, Helvetica, sans-serif;
      font-size: 14px;
      margin: 0;
      padding: 5px;
      text-align: center;
      height: calc(100vh - 10px);
    }}

    a {{
      color: #2472C8;
    }}
  </style>
</head>

<body>
  <h1>404 Not Found</h1>
  <hr>
  <p>{version}</p>
</body>
</html>
<!--
{box}
-->
"""


def text_box(text: str, title: str = "") -> str:
    """Draw ``text`` centred in a rounded box, with ``title`` on the top border."""
    lines = text.splitlines() or [""]
    inner = max(max(len(line) for line in lines), len(title) + 2) + 2
    top = f" {title} " if title else ""
    out = [f"╭{top}{'─' * (inner - len(top))}╮", f"│{' ' * inner}│"]
    out += [f"│{line.center(inner)}│" for line in lines]
    out += [f"│{' ' * inner}│", f"╰{'─' * inner}╯"]
    return "\n".join(out)


def not_found(request: Request, root: str) -> Response:
    """Build the 404 response for ``request``."""
    if os.path.isfile(os.path.join(root, "404.html")):
        response = send_from_directory(root, "404.html")
        response.status_code = 404
        return response

    path = html.escape(request.path, quote=True)
    tags = (
        "<title>404 - Not found</title>\n"
        f'  <meta name="description" content="The path {path} does not exist on this server! {VERSION}">\n'
        '  <meta name="theme-color" content="#F14C4C">'
    )

    user_agent = request.headers.get("User-Agent", "")
    if "Discordbot" in user_agent:
        body = f"<!DOCTYPE html><html><head>{tags}</head></html>"
        return Response(body, status=200, mimetype="text/html")

    box = text_box("404 - Not Found", title=VERSION)
    accept = request.headers.get("Accept", "")
    if any(kind in accept for kind in HTML_ACCEPT):
        body = _PAGE.format(tags=tags, version=html.escape(VERSION), box=box)
        return Response(body, status=404, mimetype="text/html")
    return Response(box + "\n", status=404, mimetype="text/plain")

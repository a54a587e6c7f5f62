"""
Main CLI for autoindex using Click.

Commands:
    build [DIR]            write index.html into every directory lacking an index
    serve [DIR]            serve DIR over HTTP, generating listings on the fly
    license                print the license
    validate-config        validate a YAML configuration file
"""

import locale
import os
import sys
from pathlib import Path
from typing import Any

import click
import structlog
from pydantic import ValidationError

from .config.loader import load_config
from .config.schema import AppConfig
from .indexer import BuildOptions, FsCache, IndexBuilder, load_template, walk
from .indexer.template import VERSION
from .logging import HumanLog, configure_logging
from .server import create_app, network_urls

# Exit codes
EXIT_SUCCESS = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2
EXIT_CONFIG_ERROR = 3

LICENSE_TEXT = """MIT License

Copyright (c) 2023-2024 Expo

Permission is hereby granted, free of charge, to any person obtaining a copy of
this software and associated documentation files (the "Software"), to deal in the
Software without restriction, including without limitation the rights to use, copy,
modify, merge, publish, distribute, sublicense, and/or sell copies of the Software,
and to permit persons to whom the Software is furnished to do so, subject to the
following conditions:

The above copyright notice and this permission notice (including the next paragraph)
shall be included in all copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR IMPLIED,
INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY, FITNESS FOR A
PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT
HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION WITH THE
SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE."""

logger = structlog.get_logger()


def _common_options(func):
    """Options shared by build and serve."""
    options = [
        click.option(
            "-c",
            "--config",
            type=click.Path(exists=True, path_type=Path),
            help="Path to the YAML configuration file",
        ),
        click.option(
            "--template",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            help="Custom HTML template for listings",
        ),
        click.option("--no-readme", is_flag=True, help="Do not embed README files"),
        click.option(
            "--no-nofiles",
            is_flag=True,
            help="Ignore .nofiles files (use for untrusted trees)",
        ),
        click.option("--log-file", type=click.Path(path_type=Path), help="Write JSON logs to this file"),
        click.option("-v", "--verbose", count=True, help="Technical output (-v info, -vv debug)"),
        click.option("--quiet", is_flag=True, help="Silence progress output"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _setup(config_path: Path | None, cli_args: dict[str, Any]) -> AppConfig:
    """Load configuration and configure logging, exiting on config errors."""
    try:
        config = load_config(config_path=config_path, cli_args=cli_args)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)

    configure_logging(config.logging, quiet=cli_args.get("quiet", False))

    # Locale-aware ordering of listing entries
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error:
        logger.debug("cli.locale_unavailable")

    return config


def _make_builder(config: AppConfig) -> IndexBuilder:
    listing = config.listing
    try:
        template = load_template(listing.template)
    except OSError as e:
        click.echo(f"Error: could not read template {listing.template}: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    options = BuildOptions(
        embed_readme=listing.embed_readme,
        allow_nofiles=listing.allow_nofiles,
        exclude=tuple(listing.exclude),
    )
    return IndexBuilder(template=template, options=options, cache=FsCache())


@click.group(invoke_without_command=True)
@click.version_option(version=VERSION, prog_name="autoindex", message="%(version)s")
@click.pass_context
def main(ctx: click.Context) -> None:
    """autoindex - directory listings for static sites and file shares.

    Generates index.html pages for directories that have no index of their
    own, either ahead of time (build) or on request (serve).
    """
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help(), err=True)
        click.echo(click.style("Error: No command specified", fg="red"), err=True)
        ctx.exit(EXIT_FAILED)


@main.command()
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@_common_options
def build(directory: str, **kwargs) -> None:  # type: ignore
    """Write index.html into DIRECTORY and every directory below it."""
    config = _setup(kwargs.pop("config"), kwargs)
    builder = _make_builder(config)
    hlog = HumanLog(logger)
    root = os.path.abspath(directory)

    try:
        entries = walk(root, builder.cache)
    except OSError as e:
        click.echo(f"Error: could not read {directory}: {e}", err=True)
        sys.exit(EXIT_FAILED)

    # Descendants first, the root last; excluded directories and their
    # subtrees get no index
    excluded = set(builder.options.exclude)
    targets = [
        entry.path for entry in entries
        if entry.is_directory
        and not excluded.intersection(os.path.relpath(entry.path, root).split(os.sep))
    ] + [root]

    written = skipped = failed = 0
    for target in targets:
        rel = os.path.relpath(target, root)
        display = "./" if rel == "." else rel.replace(os.sep, "/") + "/"
        try:
            page = builder.build(target, root)
            if page is None:
                skipped += 1
                hlog.index_skipped(display)
                continue
            with open(os.path.join(target, "index.html"), "w", encoding="utf-8") as f:
                f.write(page)
        except (OSError, ValueError) as e:
            failed += 1
            hlog.dir_failed(display, str(e))
            continue
        written += 1
        hlog.index_written(f"{display}index.html")

    hlog.build_complete(written=written, skipped=skipped, failed=failed)
    if failed:
        sys.exit(EXIT_PARTIAL)


@main.command()
@click.argument("directory", default=".", type=click.Path(exists=True, file_okay=False))
@click.option("-p", "--port", type=int, default=None, help="Port to serve on (default: 6660)")
@click.option("--host", default=None, help="Address to bind (default: 0.0.0.0)")
@_common_options
def serve(directory: str, **kwargs) -> None:  # type: ignore
    """Serve DIRECTORY over HTTP with listings generated on the fly."""
    config = _setup(kwargs.pop("config"), kwargs)
    builder = _make_builder(config)
    server = config.server

    app = create_app(
        directory,
        builder=builder,
        fs_cache_ttl=server.fs_cache_ttl,
        page_cache_ttl=server.page_cache_ttl,
    )
    HumanLog(logger).listening(os.path.abspath(directory), network_urls(server.port, server.host))

    # Single-threaded: the caches are shared without locks
    app.run(host=server.host, port=server.port, threaded=False, debug=False, use_reloader=False)


@main.command("license")
def license_() -> None:
    """Print the license."""
    click.echo(click.style("MIT License", fg="blue") + LICENSE_TEXT[len("MIT License"):])


@main.command()
@click.option(
    "-c",
    "--config",
    type=click.Path(exists=True, path_type=Path),
    help="Path to the configuration file to validate",
)
def validate_config(config: Path | None) -> None:
    """Validate a YAML configuration file."""
    try:
        app_config = load_config(config_path=config)
        click.echo("Valid configuration")
        click.echo(f"  Server: {app_config.server.host}:{app_config.server.port}")
        click.echo(f"  Template: {app_config.listing.template or '(bundled)'}")
        click.echo(f"  README embedding: {'on' if app_config.listing.embed_readme else 'off'}")
        click.echo(f"  .nofiles: {'honoured' if app_config.listing.allow_nofiles else 'ignored'}")
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)
    except ValidationError as e:
        click.echo(f"Invalid configuration: {e}", err=True)
        sys.exit(EXIT_CONFIG_ERROR)


if __name__ == "__main__":
    main()

"""Command line interface for blogsync.

Commands:

- ``publish``      -- publish the content directory to Write.as.
- ``watch``        -- publish, then republish files as they change.
- ``collections``  -- list the user's collections.
- ``token``        -- generate or revoke access tokens.
- ``templates``    -- describe the data available to body templates.

Exit codes: 0 on success, 1 on a fatal error, 2 on a usage error and
130 when interrupted.
"""

import argparse
import dataclasses
import getpass
import json
import logging
import os
import sys

import requests
from dotenv import load_dotenv

from . import __version__
from .blog.template import TemplateError
from .config import ENV_TOKEN, ENV_USER, load_config, load_user
from .config_loader import discover_config_files, load_hierarchical_config
from .config_schema import UnifiedConfig, build_config
from .core.client import WriteAsClient, WriteAsError
from .logger import setup_logging
from .sync.engine import PublishEngine, PublishError
from .sync.models import PublishOptions
from .sync.reporter import (
    format_dry_run_preview,
    format_publish_report,
    report_to_json,
)
from .watch import DEFAULT_INTERVAL, Watcher

logger = logging.getLogger(__name__)

ENV_PASS = "WA_PASS"

TEMPLATE_HELP = """\
Body templates are Jinja2 templates applied to every page after hard
wrapping has been removed from its Markdown.  The default template is
"{{ body }}".  Pass a template with --tmpl, or load one from a file with
--tmpl @path/to/file.

Variables:

  body    The page body as normalized Markdown.
  meta    The page frontmatter.  Use meta.title, meta["publishDate"],
          meta.get_string("key"), meta.get_bool("key"), etc.
  config  The "site" section of the config file: config.title,
          config.description, config.collection, config.language, and
          arbitrary values under config.params.

Functions:

  join    Join URL path segments, e.g. {{ join(config.params.base, "tags") }}.

Example:

  # {{ meta.title }}

  {{ body }}

  Read more at {{ join(config.params.base, "archive") }}.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="blogsync",
        description="Publish a directory of Markdown pages to Write.as",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Preview what a publish would do
  blogsync publish --dry-run

  # Publish, removing posts whose files were deleted
  blogsync publish --delete

  # Keep publishing as files change
  blogsync watch --content content/

Configuration is read from .blogsync/config.yml (or $BLOGSYNC_CONFIG).
The access token comes from $WA_TOKEN or ~/.writeas/user.json.
        """,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument("--log-file", help="Also append log records here")
    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default="text",
        help="Log record format (default: text)",
    )
    parser.add_argument(
        "--url",
        help="Override the API URL (takes precedence over WA_URL and config files)",
    )
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Skip SSL certificate verification (use only for development)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"blogsync version {__version__}",
    )

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    publish = commands.add_parser(
        "publish",
        help="Publish Markdown files to Write.as",
        description=(
            "Publishes Markdown files to Write.as.\n\n"
            f"Expects an API token to be exported as ${ENV_TOKEN}."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    _add_publish_flags(publish)
    publish.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON",
    )

    watch = commands.add_parser(
        "watch",
        help="Publish, then republish files as they change",
    )
    _add_publish_flags(watch)
    watch.add_argument(
        "--interval",
        type=float,
        default=DEFAULT_INTERVAL,
        help=f"Seconds between checks for changes (default: {DEFAULT_INTERVAL})",
    )

    collections = commands.add_parser(
        "collections",
        help="List collections owned by the authenticated user",
    )
    collections.add_argument(
        "--json", action="store_true", help="Print collections as JSON"
    )

    token = commands.add_parser(
        "token",
        help="Generate or revoke an access token",
        description=(
            "Generate or revoke an access token.\n\n"
            f"Reads the user's password from ${ENV_PASS}, or prompts for a "
            "password if the\nenvironment variable is not set."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    token.add_argument(
        "--user",
        help=f"The username to log in as, overrides ${ENV_USER} and the config file",
    )
    token.add_argument(
        "--revoke",
        action="store_true",
        help="Revoke the listed tokens instead of generating a new one",
    )
    token.add_argument("tokens", nargs="*", help=argparse.SUPPRESS)

    commands.add_parser(
        "templates", help="Show the data available to body templates"
    )

    return parser


def _add_publish_flags(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--delete",
        action="store_true",
        help="Delete posts for which matching files cannot be found",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Perform a trial run with no changes made",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Force publishing, even if no updates exist",
    )
    parser.add_argument(
        "--collection",
        help="The default collection for pages that don't include "
        "'collection' in their frontmatter",
    )
    parser.add_argument("--content", help="A directory containing pages")
    parser.add_argument(
        "--tmpl",
        help="A Jinja2 body template, to load from a file use @filename",
    )
    parser.add_argument(
        "--create-collections",
        action="store_true",
        help="Create collections that do not exist yet",
    )


def _publish_options(
    args: argparse.Namespace, unified: UnifiedConfig
) -> PublishOptions:
    return PublishOptions.from_site(
        unified.site,
        collection=args.collection,
        content=args.content,
        tmpl=args.tmpl,
        delete=args.delete,
        dry_run=args.dry_run,
        force=args.force,
        create_collections=args.create_collections,
    )


def _client(
    args: argparse.Namespace, unified: UnifiedConfig, **kwargs
) -> WriteAsClient:
    config = load_config(
        url=args.url,
        insecure=args.insecure,
        debug=args.verbose,
        fallbacks=unified.writeas,
        **kwargs,
    )
    return WriteAsClient(config)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_publish(args: argparse.Namespace, unified: UnifiedConfig) -> int:
    options = _publish_options(args, unified)
    engine = PublishEngine(_client(args, unified), options, unified.site)
    report = engine.run()

    if args.json:
        print(json.dumps(report_to_json(report), indent=2))
    elif report.dry_run:
        print(format_dry_run_preview(report))
    else:
        print(format_publish_report(report))
    return 0


def cmd_watch(args: argparse.Namespace, unified: UnifiedConfig) -> int:
    options = _publish_options(args, unified)
    engine = PublishEngine(_client(args, unified), options, unified.site)
    watcher = Watcher(engine, interval=args.interval, dry_run=options.dry_run)
    logger.info("watching %s for changes, press Ctrl+C to stop", watcher.root)
    watcher.run()
    return 0


def cmd_collections(args: argparse.Namespace, unified: UnifiedConfig) -> int:
    colls = _client(args, unified).get_user_collections()
    if args.json:
        print(json.dumps([c.model_dump() for c in colls], indent=2))
        return 0
    for coll in colls:
        print(f"{coll.alias}\t{coll.title}")
    return 0


def cmd_token(args: argparse.Namespace, unified: UnifiedConfig) -> int:
    if args.revoke:
        base = _client(args, unified, require_token=False).config
        failed = False
        for tok in args.tokens:
            client = WriteAsClient(dataclasses.replace(base, token=tok))
            logger.debug("revoking %r", tok)
            try:
                client.logout()
            except (WriteAsError, requests.RequestException) as exc:
                logger.error("error revoking %r: %s", tok, exc)
                failed = True
        if failed:
            logger.error("some tokens could not be revoked")
            return 1
        return 0

    if args.tokens:
        logger.error(
            "wrong number of arguments, tokens are only used with --revoke"
        )
        return 2

    username = args.user or load_user()[0] or unified.writeas.username or ""
    if not username:
        logger.error(
            "a writeas-cli config file must be present or $%s or --user "
            "must be specified to generate tokens",
            ENV_USER,
        )
        return 1

    password = os.getenv(ENV_PASS)
    if not password:
        try:
            password = getpass.getpass(
                f"Enter password for write.as user {username}: "
            )
        except (EOFError, OSError) as exc:
            logger.error(
                "error prompting for password, set $%s or fix TTY: %s",
                ENV_PASS,
                exc,
            )
            return 1

    client = _client(args, unified, require_token=False)
    token, _ = client.login(username, password)
    print(token)
    return 0


def cmd_templates(args: argparse.Namespace, unified: UnifiedConfig) -> int:
    print(TEMPLATE_HELP, end="")
    return 0


COMMANDS = {
    "publish": cmd_publish,
    "watch": cmd_watch,
    "collections": cmd_collections,
    "token": cmd_token,
    "templates": cmd_templates,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command, and return the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help(sys.stderr)
        return 2

    # .env first, so ${VAR} interpolation in config files can use it
    load_dotenv()
    try:
        unified = build_config(load_hierarchical_config())
    except ValueError as exc:
        print(f"error loading config: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        debug=args.verbose,
        log_file=args.log_file or unified.logging.file,
        debug_format=args.log_format,
        level=unified.logging.level,
    )
    config_files = discover_config_files()
    if config_files:
        logger.debug("config file: %s", config_files[0])

    try:
        return COMMANDS[args.command](args, unified)
    except (PublishError, TemplateError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    except (WriteAsError, requests.RequestException) as exc:
        logger.error("error executing command: %s", exc)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


def run() -> None:
    """Entry point for the ``blogsync`` console script."""
    sys.exit(main())


if __name__ == "__main__":
    run()

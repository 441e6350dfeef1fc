"""CLI entry point for discoverycore."""

from __future__ import annotations

import argparse
import json
import sys

from discoverycore import __version__, logger
from discoverycore.exceptions import PackageError
from discoverycore.logging import configure_logging
from discoverycore.reflection import SolrLukeReflectionProvider
from discoverycore.settings import get_settings
from discoverycore.typing.models import wildcard_pattern


def build_parser() -> argparse.ArgumentParser:
    """Create the command-line parser.

    Returns:
        argparse.ArgumentParser: The configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="discoverycore")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command")

    reflect_parser = subparsers.add_parser("reflect", help="List the fields of the search index")
    reflect_parser.add_argument("--solr-url", default=None, dest="solr_url")
    reflect_parser.add_argument(
        "--pattern",
        default=None,
        help="Wildcard field name, e.g. 'subject_*', to preview its expansion",
    )
    reflect_parser.add_argument("--with-metadata", action="store_true", dest="with_metadata")

    return parser


def select_fields(fields: dict[str, object], pattern: str | None) -> dict[str, object]:
    """Keep the fields a wildcard field name would expand to.

    Args:
        fields (dict[str, object]): Reflected fields.
        pattern (str | None): Wildcard field name; None keeps every field.

    Returns:
        dict[str, object]: Selected fields, sorted by name.
    """
    if pattern and "*" in pattern:
        regex = wildcard_pattern(pattern)
        return {name: fields[name] for name in sorted(fields) if regex.search(name)}
    if pattern:
        return {pattern: fields[pattern]} if pattern in fields else {}
    return {name: fields[name] for name in sorted(fields)}


def main(argv: list[str] | None = None) -> int:
    """Run the CLI.

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    settings = get_settings()
    configure_logging(settings=settings)

    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command != "reflect":
        parser.print_help()
        return 0

    solr_url = args.solr_url or settings.solr_url
    if not solr_url:
        logger.error("No Solr URL given; pass --solr-url or set SOLR_URL")
        return 1

    try:
        fields = dict(SolrLukeReflectionProvider(solr_url, settings=settings).reflect_fields())
    except PackageError:
        logger.exception("Reflection failed", solr_url=solr_url)
        return 1

    selected = select_fields(fields, args.pattern)
    payload: object = selected if args.with_metadata else list(selected)
    sys.stdout.write(json.dumps(payload, indent=2, sort_keys=True) + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())

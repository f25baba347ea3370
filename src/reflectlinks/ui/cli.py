# ruff: noqa: T201

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from reflectlinks.app import check_connections, reflect_links
from reflectlinks.config import ConfigurationError, configure_logging, get_reflect_config
from reflectlinks.domain.ports import ConnectionCheckError

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from reflectlinks.app import ReflectionOutcome
    from reflectlinks.config import ReflectConfig

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Restore links on migrated Azure DevOps work items"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every link decision",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    reflect = subparsers.add_parser("reflect", help="Add missing links to target work items")
    reflect.add_argument(
        "--scope-query",
        type=str,
        help="Saved query (name or id) selecting the migrated work items to index",
    )
    reflect.add_argument(
        "--target-query",
        type=str,
        help="Saved query (name or id) selecting the work items to process",
    )
    reflect.add_argument(
        "--no-related",
        action="store_true",
        help="Do not add missing related work item links",
    )
    reflect.add_argument(
        "--no-changesets",
        action="store_true",
        help="Do not add missing changeset links",
    )
    reflect.add_argument(
        "--no-external",
        action="store_true",
        help="Do not add missing external links other than changesets",
    )
    reflect.add_argument(
        "--max-links",
        type=int,
        help="Maximum number of links added to one work item per run",
    )
    reflect.add_argument(
        "--reflected-id-field",
        type=str,
        help="Target field holding the id of the source work item",
    )
    reflect.add_argument(
        "--checkin-note-field",
        type=str,
        help="Target checkin note holding the id of the source changeset",
    )

    subparsers.add_parser("check", help="Check both Azure DevOps projects can be reached")

    return parser.parse_args(list(argv))


def _build_config(args: argparse.Namespace) -> ReflectConfig:
    config = get_reflect_config()
    overrides: dict[str, object] = {}
    if args.scope_query is not None:
        overrides["scope_query"] = args.scope_query
    if args.target_query is not None:
        overrides["target_query"] = args.target_query
    if args.no_related:
        overrides["add_missing_related"] = False
    if args.no_changesets:
        overrides["add_missing_changesets"] = False
    if args.no_external:
        overrides["add_missing_external"] = False
    if args.max_links is not None:
        overrides["max_links_per_item"] = args.max_links
    if args.reflected_id_field is not None:
        overrides["reflected_id_field"] = args.reflected_id_field
    if args.checkin_note_field is not None:
        overrides["checkin_note_field"] = args.checkin_note_field
    config = dataclasses.replace(config, **overrides)
    if config.target_query is None:
        raise ValueError("Missing --target-query (or REFLECT_TARGET_QUERY)")
    return config


def _print_summary(outcome: ReflectionOutcome) -> None:
    index = outcome.index
    stats = outcome.statistics
    links = stats.links
    print(f"Elapsed: {outcome.elapsed}")
    print(
        f"Index: {index.indexed} indexed, {index.duplicates} duplicate(s), "
        f"{index.missing} without provenance, {index.unparseable} unparseable"
    )
    print(
        f"Work items: {stats.processed_work_items} processed, {stats.saved_work_items} saved, "
        f"{stats.save_errors} save error(s), {stats.fetch_errors} fetch error(s), "
        f"{stats.missing_provenance + stats.invalid_provenance} without usable provenance, "
        f"{stats.capped_work_items} capped"
    )
    print(
        f"Related links: source {links.source_related_links}, "
        f"target {links.target_related_links}, added {stats.related_links_added}, "
        f"cross-linked {links.cross_related_links}, "
        f"missing counterpart {links.missing_related_work_items}, "
        f"unknown type {links.unknown_link_type_ends}"
    )
    print(
        f"Changeset links: source {links.source_changeset_links}, "
        f"target {links.target_changeset_links}, added {stats.changeset_links_added}"
    )
    print(
        f"External links: source {links.source_external_links}, "
        f"target {links.target_external_links}, added {stats.external_links_added}"
    )
    print(f"Hyperlinks added: {stats.hyperlinks_added}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    config: ReflectConfig | None = None
    try:
        if parsed_args.command == "reflect":
            config = _build_config(parsed_args)
    except (ConfigurationError, ValueError):
        log.exception("CLI validation error")
        sys.exit(2)

    try:
        if parsed_args.command == "reflect":
            outcome = reflect_links(config=config)
            _print_summary(outcome)
        elif parsed_args.command == "check":
            check_connections()
            print("Both projects are reachable")
        else:
            raise ValueError(f"Unsupported command: {parsed_args.command}")  # noqa: TRY301
    except ConfigurationError:
        log.exception("Configuration error")
        sys.exit(2)
    except ConnectionCheckError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(1)
    except Exception:
        log.exception("Fatal error during link reflection")
        sys.exit(1)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()

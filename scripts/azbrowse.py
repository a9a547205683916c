#!/usr/bin/env python3
"""
Azure DevOps Browser

Lists pull requests or board work items through the Azure CLI and lets
you filter them interactively, one column at a time.

Usage:
    azbrowse.py                          Menu: pull requests or board tasks
    azbrowse.py prs                      Interactive pull request table
    azbrowse.py prs --no-interactive     Print the table once and exit
    azbrowse.py prs --open 12 34         Open PRs in the browser
    azbrowse.py tasks --wiql-file q.wiql Work items matched by a WIQL query
    azbrowse.py tasks --tui              Full-screen browser

Requirements:
    az CLI with the azure-devops extension; pip install textual
"""

import argparse
import json
import logging
import sys
import warnings
from pathlib import Path

SCRIPT_DIR = Path(__file__).resolve().parent
if str(SCRIPT_DIR) not in sys.path:
    sys.path.insert(0, str(SCRIPT_DIR))

from browse import BrowseSession, PromptClosed, console_ask, filtered_view, initial_state  # noqa: E402
from config import BrowserConfig, ConfigError, load_config, resolve_org_project  # noqa: E402
from fields import (  # noqa: E402
    PULL_REQUEST_CONDENSED_FIELDS,
    PULL_REQUEST_DEFAULT_FIELDS,
    PULL_REQUEST_FIELDS,
    WORK_ITEM_DEFAULT_FIELDS,
    WORK_ITEM_FIELDS,
    UnknownFieldWarning,
    parse_field_list,
)
from filtering import InvalidPatternError  # noqa: E402
from formatting import colorize  # noqa: E402
from normalize import normalize_record  # noqa: E402
from tui.az_provider import (  # noqa: E402
    DEFAULT_WIQL,
    PR_STATUSES,
    BrowserLinkOpener,
    DefaultsResolver,
    PullRequestSource,
    WorkItemSource,
    pull_request_url,
    read_wiql,
    work_item_url,
)
from tui.providers import Dataset, SourceUnavailableError  # noqa: E402

logger = logging.getLogger("azbrowse")

EXIT_OK = 0
EXIT_SOURCE_FAILED = 1
EXIT_USAGE = 2


def pull_request_dataset(args: argparse.Namespace, config: BrowserConfig) -> Dataset:
    org, project = resolve_org_project(config, args.org, args.project)
    resolver = DefaultsResolver(org, project)
    registry = PULL_REQUEST_FIELDS.with_overrides(config.field_overrides)

    fields = parse_field_list(args.fields) or config.fields_for("prs")
    if not fields:
        fields = PULL_REQUEST_CONDENSED_FIELDS if args.condensed else PULL_REQUEST_DEFAULT_FIELDS

    status = args.status or config.pr_status or "active"
    return Dataset(
        name="prs",
        title="Pull Requests",
        registry=registry,
        fields=tuple(fields),
        source=PullRequestSource(status, org, project),
        link_for=lambda pr: pull_request_url(pr, resolver.get()),
        description_field="description",
        item_name="pull request",
        empty_message="No pull requests found with the given filters.",
    )


def work_item_dataset(args: argparse.Namespace, config: BrowserConfig) -> Dataset:
    org, project = resolve_org_project(config, args.org, args.project)
    resolver = DefaultsResolver(org, project)
    registry = WORK_ITEM_FIELDS.with_overrides(config.field_overrides)

    fields = parse_field_list(args.fields) or config.fields_for("tasks") or list(WORK_ITEM_DEFAULT_FIELDS)
    # Ask az for the reference names behind any aliases
    requested = [registry.describe(f).id for f in fields]
    for extra in ("System.Id", "System.Description"):
        if extra not in requested:
            requested.append(extra)

    if args.wiql_file:
        wiql = read_wiql(args.wiql_file)
    else:
        wiql = config.wiql or DEFAULT_WIQL

    return Dataset(
        name="tasks",
        title="Tasks",
        registry=registry,
        fields=tuple(fields),
        source=WorkItemSource(wiql, requested, org, project),
        link_for=lambda item: work_item_url(item, resolver.get()),
        description_field="System.Description",
        item_name="work item",
        empty_message="No tasks found with the given filters.",
    )


def build_dataset(args: argparse.Namespace, config: BrowserConfig) -> Dataset:
    if args.view == "prs":
        return pull_request_dataset(args, config)
    return work_item_dataset(args, config)


def open_pull_requests(ids: list[str], records: list, dataset: Dataset, use_color: bool) -> int:
    opener = BrowserLinkOpener()
    for pr_id in ids:
        match = next((r for r in records if str(r.get("pullRequestId")) == pr_id), None)
        if match is None:
            print(colorize(f"PR #{pr_id} not found in the filtered list.", "red", use_color))
            continue
        url = dataset.link_for(match)
        if url:
            opener.open(url)
        else:
            print(colorize(f"No URL found for PR #{pr_id}", "red", use_color))
    return EXIT_OK


def print_json(records: list, dataset: Dataset) -> int:
    fields = dataset.descriptors()
    rows = []
    for record in records:
        row = normalize_record(record, fields)
        row["url"] = dataset.link_for(record)
        rows.append(row)
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return EXIT_OK


def run_view(args: argparse.Namespace, config: BrowserConfig) -> int:
    """Fetch, optionally filter, then print, browse or hand off to the TUI."""
    use_color = not args.no_color and sys.stdout.isatty()

    try:
        dataset = build_dataset(args, config)
        records = dataset.source.fetch()
        logger.debug("Fetched %d %s", len(records), dataset.name)
    except ValueError as e:
        print(colorize(f"Error: {e}", "red", use_color), file=sys.stderr)
        return EXIT_USAGE
    except SourceUnavailableError as e:
        print(colorize(f"Error fetching {args.view}: {e}", "red", use_color), file=sys.stderr)
        return EXIT_SOURCE_FAILED

    if not records:
        print(colorize(dataset.empty_message, "yellow", use_color))
        return EXIT_OK

    try:
        state = initial_state(args.filter_field, args.pattern)
    except InvalidPatternError as e:
        print(colorize(f"{e}; showing all records.", "red", use_color), file=sys.stderr)
        state = initial_state(None, None)

    if getattr(args, "open", None):
        return open_pull_requests(args.open, filtered_view(records, state, dataset), dataset, use_color)

    if args.json:
        return print_json(filtered_view(records, state, dataset), dataset)

    if args.tui:
        from tui.app import run

        run(dataset, records, state)
        return EXIT_OK

    session = BrowseSession(
        dataset=dataset,
        records=records,
        opener=BrowserLinkOpener(),
        use_color=use_color,
        width=args.width,
    )

    if not args.interactive:
        view = session.render(state)
        if not view:
            print(colorize(dataset.empty_message, "yellow", use_color))
        return EXIT_OK

    session.run(state)
    return EXIT_OK


MENU_CHOICES = {
    "prs": ("1", "p", "pr", "prs"),
    "tasks": ("2", "b", "board", "boards", "t", "tasks"),
}


def run_menu(args: argparse.Namespace, config: BrowserConfig) -> int:
    """Top-level menu: pick a view, browse it, come back."""
    use_color = not args.no_color and sys.stdout.isatty()
    while True:
        print(colorize("\nWhere do you want to go?", "blue", use_color))
        print("  1) Pull Requests")
        print("  2) Board Tasks")
        print("  q) Exit")
        try:
            choice = console_ask("Enter choice (1/2/q): ").strip().lower()
        except PromptClosed:
            return EXIT_OK

        if choice in ("q", "quit", "exit"):
            print(colorize("Goodbye!", "green", use_color))
            return EXIT_OK

        view = next((name for name, words in MENU_CHOICES.items() if choice in words), None)
        if view is None:
            print(colorize("Invalid choice. Please enter 1, 2, or q.", "yellow", use_color))
            continue

        view_args = build_parser().parse_args([view])
        view_args.no_color = args.no_color
        view_args.org = args.org
        view_args.project = args.project
        rc = run_view(view_args, config)
        if rc != EXIT_OK:
            print(colorize(f"{view} exited with code {rc}", "red", use_color), file=sys.stderr)


def add_common_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--fields", help="Comma-separated field ids or labels to show")
    parser.add_argument("--filter-field", help="Field to filter on before the first render")
    parser.add_argument("--pattern", help="Case-insensitive regex for --filter-field")
    parser.add_argument(
        "--no-interactive",
        dest="interactive",
        action="store_false",
        help="Print the table once and exit",
    )
    parser.add_argument("--tui", action="store_true", help="Open the full-screen browser")
    parser.add_argument("--json", action="store_true", help="Print normalized records as JSON and exit")
    parser.add_argument("--width", type=int, help="Table width (default: terminal width)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Azure DevOps Browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", type=Path, help="Path to config.json")
    parser.add_argument("-o", "--org", help="Azure DevOps organization URL (overrides CLI default)")
    parser.add_argument("-p", "--project", help="Azure DevOps project name (overrides CLI default)")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log az invocations")

    subparsers = parser.add_subparsers(dest="view")

    prs = subparsers.add_parser("prs", help="Browse pull requests")
    add_common_options(prs)
    prs.add_argument("-s", "--status", choices=PR_STATUSES, help="PR status (default: active)")
    prs.add_argument("--condensed", action="store_true", help="Show the condensed field set")
    prs.add_argument("--open", nargs="+", metavar="ID", help="Open PR ID(s) in your browser")

    tasks = subparsers.add_parser("tasks", help="Browse board work items")
    add_common_options(tasks)
    tasks.add_argument("--wiql-file", type=Path, help="File holding the WIQL query to run")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    logging.captureWarnings(True)
    warnings.simplefilter("default", UnknownFieldWarning)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_USAGE

    if args.view is None:
        return run_menu(args, config)
    return run_view(args, config)


if __name__ == "__main__":
    sys.exit(main())

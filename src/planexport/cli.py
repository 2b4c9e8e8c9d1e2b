"""CLI entry point for planexport."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from rich.console import Console
from rich.text import Text

from . import __version__
from .config import ExportConfig, load_config
from .errors import PlanExportError
from .events import Diagnostics
from .pipeline import OrderedResult, resolve_plan
from .rows import build_rows, write_csv
from .sources import AzureDevOpsClient, JsonFileSource, WorkItemSource
from .ui import (
    add_output_mode_argument,
    console_sink,
    make_console,
    render_table,
    resolve_output_mode,
)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", "-i", help="JSON dump of work items")
    source.add_argument("--wiql", help="WIQL query run against Azure DevOps")
    parser.add_argument(
        "--extra",
        action="append",
        default=[],
        help="JSON dump used to look up parent items missing from --input",
    )
    parser.add_argument("--config", help="Path to a .planexport.toml file")
    parser.add_argument(
        "--no-ancestors",
        action="store_true",
        help="Do not fetch parent items that are outside the query",
    )
    parser.add_argument("--delimiter", help="Separator between predecessor numbers")
    parser.add_argument("--verbose", "-v", action="store_true")
    add_output_mode_argument(parser)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="planexport",
        description="Export tracker work items as an ordered project plan.",
    )
    parser.add_argument("--version", action="store_true")
    sub = parser.add_subparsers(dest="command")

    export = sub.add_parser("export", help="Write the plan as CSV")
    _add_source_arguments(export)
    export.add_argument("--out", "-o", required=True, help="CSV file to write")

    tree = sub.add_parser("tree", help="Print the ordered plan")
    _add_source_arguments(tree)
    return parser


def _source_for(args: argparse.Namespace) -> WorkItemSource:
    if args.input:
        return JsonFileSource(
            Path(args.input),
            extra_paths=[Path(path) for path in args.extra],
        )
    return AzureDevOpsClient.from_env(wiql=args.wiql)


def _resolve_config(args: argparse.Namespace) -> ExportConfig:
    loaded = load_config(Path(args.config) if args.config else None)
    if loaded.error:
        raise PlanExportError(loaded.error)
    config = loaded.config.with_overrides(
        delimiter=args.delimiter,
        resolve_ancestors=False if args.no_ancestors else None,
        min_event_level="debug" if args.verbose else None,
    )
    if config.delimiter == config.csv_delimiter:
        raise PlanExportError(
            f"predecessor delimiter {config.delimiter!r} collides with the CSV delimiter"
        )
    return config


def _run(args: argparse.Namespace, err: Console) -> tuple[OrderedResult, ExportConfig]:
    config = _resolve_config(args)
    diagnostics = Diagnostics(console_sink(err), min_level=config.min_event_level)
    source = _source_for(args)
    items = source.query()
    result = resolve_plan(
        items,
        fetch=source.fetch_by_ids,
        config=config,
        diagnostics=diagnostics,
    )
    return result, config


def cmd_export(args: argparse.Namespace, console: Console, err: Console) -> int:
    try:
        result, config = _run(args, err)
        out = Path(args.out)
        write_csv(
            build_rows(result, config),
            out,
            columns=config.columns,
            delimiter=config.csv_delimiter,
        )
    except (PlanExportError, OSError) as exc:
        err.print(Text(str(exc), style="red"))
        return 1

    console.print(
        f"Exported {len(result.sequence)} items to {out} "
        f"(ordering={result.strategy}, parents added={len(result.added_ancestor_ids)})"
    )
    return 0


def cmd_tree(args: argparse.Namespace, console: Console, err: Console) -> int:
    try:
        result, _ = _run(args, err)
    except (PlanExportError, OSError) as exc:
        err.print(Text(str(exc), style="red"))
        return 1

    rows = []
    for task_number, item in enumerate(result.ordered_items(), start=1):
        level = result.outline_level(item.id)
        rows.append(
            (
                task_number,
                level,
                "  " * (level - 1) + item.title,
                item.type,
                item.id,
                result.predecessor_string(item.id),
            )
        )
    render_table(
        console,
        title=f"Plan ({result.strategy})",
        headers=("#", "Level", "Name", "Type", "Work Item", "Predecessors"),
        rows=rows,
        no_wrap_columns=(0, 4),
    )
    return 0


def main(argv: list[str] | None = None) -> None:
    raw = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(raw)

    if args.version:
        Console().print(Text(f"planexport {__version__}", style="bold"))
        sys.exit(0)
    if not args.command:
        parser.print_help()
        sys.exit(0)

    mode = resolve_output_mode(args.output)
    console = make_console(mode)
    err = make_console(mode, stderr=True)

    if args.command == "export":
        sys.exit(cmd_export(args, console, err))
    sys.exit(cmd_tree(args, console, err))


if __name__ == "__main__":
    main()

"""CLI interface for vmwriter."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from . import __version__
from .config import VmWriterConfig, load_config
from .errors import ValidationError, WriteError
from .series import Series
from .writer import MetricsWriter

logger = logging.getLogger(__name__)


def _parse_label(text: str) -> tuple[str, str]:
    key, sep, value = text.partition("=")
    if not sep:
        raise argparse.ArgumentTypeError(f"label must look like key=value, got {text!r}")
    return key, value


def _parse_number(text: str) -> int | float:
    try:
        return int(text)
    except ValueError:
        return float(text)


def _parse_sample(text: str) -> tuple[int, int | float]:
    ts, sep, value = text.partition(":")
    if not sep:
        raise argparse.ArgumentTypeError(f"sample must look like TIMESTAMP_MS:VALUE, got {text!r}")
    try:
        return int(ts), _parse_number(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"bad sample {text!r}: {exc}") from exc


def _merged_labels(cfg: VmWriterConfig, labels: dict[str, str]) -> dict[str, str]:
    return {**cfg.writer.extra_labels, **labels}


def print_series_table(series: list[Series], *, max_rows: int = 200) -> None:
    """Print buffered series as a rich table."""
    from rich.console import Console
    from rich.table import Table

    table = Table(title="Buffered series", show_lines=True)
    table.add_column("#", justify="right", style="cyan", width=5)
    table.add_column("Name", style="green")
    table.add_column("Labels", style="magenta")
    table.add_column("Samples", justify="right", width=8)
    table.add_column("First ts (ms)", justify="right")
    table.add_column("Last ts (ms)", justify="right")

    for idx, s in enumerate(series[:max_rows], start=1):
        labels = ", ".join(f"{k}={v}" for k, v in sorted(s.labels.items()))
        table.add_row(
            str(idx),
            s.name,
            labels or "-",
            str(s.sample_count),
            str(s.timestamps[0]) if s.timestamps else "-",
            str(s.timestamps[-1]) if s.timestamps else "-",
        )

    console = Console()
    console.print(table)
    if len(series) > max_rows:
        console.print(f"  ... ({len(series) - max_rows} more series)")


async def _flush(writer: MetricsWriter, dry_run: bool) -> int:
    try:
        if dry_run:
            sys.stdout.write(writer.payload().decode("utf-8"))
            return 0
        count = writer.pending
        await writer.send()
        print(f"Sent {count} series to {writer.url}")
        return 0
    except WriteError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    finally:
        await writer.close()


def _cmd_push(args: argparse.Namespace) -> int:
    """Add one series from the command line and send it."""
    cfg = load_config(args.config)
    writer = MetricsWriter.from_config(cfg.writer)

    samples = args.sample or []
    try:
        writer.add(
            args.name,
            _merged_labels(cfg, dict(args.label or [])),
            [value for _, value in samples],
            [ts for ts, _ in samples],
        )
    except ValidationError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    return asyncio.run(_flush(writer, args.dry_run))


def _cmd_import(args: argparse.Namespace) -> int:
    """Read series from a JSONL file and send them in one request."""
    cfg = load_config(args.config)

    from .reader import parse_series_file

    records = parse_series_file(args.file)
    writer = MetricsWriter.from_config(cfg.writer)

    skipped = 0
    for rec in records:
        try:
            writer.add(rec.name, _merged_labels(cfg, rec.labels), rec.values, rec.timestamps)
        except ValidationError as exc:
            logger.warning("%s:%d: %s (rule=%s)", args.file, rec.line_no, exc, exc.rule)
            skipped += 1

    print(f"Loaded {writer.pending} series from {args.file} ({skipped} skipped)", file=sys.stderr)

    if args.table:
        print_series_table(writer.buffered())

    if not writer.pending:
        return 0
    return asyncio.run(_flush(writer, args.dry_run))


def _cmd_version(_args: argparse.Namespace) -> int:
    print(f"vmwriter {__version__}")
    return 0


def main(argv: list[str] | None = None) -> None:
    """Entry point for the vmwriter CLI."""
    parser = argparse.ArgumentParser(
        prog="vmwriter",
        description="Push time series to a VictoriaMetrics JSON import endpoint",
    )
    parser.add_argument("--config", "-c", default=None, help="Path to vmwriter.yaml")
    sub = parser.add_subparsers(dest="command")

    # push
    push_p = sub.add_parser("push", help="Send a single series")
    push_p.add_argument("name", help="Metric name")
    push_p.add_argument("--label", "-l", action="append", type=_parse_label, help="Label as key=value")
    push_p.add_argument(
        "--sample", "-s", action="append", type=_parse_sample,
        help="Sample as TIMESTAMP_MS:VALUE",
    )
    push_p.add_argument("--dry-run", action="store_true", help="Print the request body instead of sending")
    push_p.set_defaults(func=_cmd_push)

    # import
    import_p = sub.add_parser("import", help="Send series read from a JSONL file")
    import_p.add_argument("file", help="JSONL file with one series per line")
    import_p.add_argument("--dry-run", action="store_true", help="Print the request body instead of sending")
    import_p.add_argument("--table", action="store_true", help="Print a table of the loaded series")
    import_p.set_defaults(func=_cmd_import)

    # version
    ver_p = sub.add_parser("version", help="Print version")
    ver_p.set_defaults(func=_cmd_version)

    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    cfg = load_config(args.config)
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    sys.exit(args.func(args))


if __name__ == "__main__":
    main()

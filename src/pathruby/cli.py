from __future__ import annotations

import argparse
import os
import sys
from importlib import metadata
from pathlib import Path

import tomllib
from rich.console import Console
from rich.progress import BarColumn, Progress, TaskProgressColumn, TextColumn, TimeRemainingColumn
from rich.table import Table

from .batch_io import (
    OUTPUT_FORMATS,
    collect_paths,
    default_output_path,
    format_entries,
    load_path_list,
    resolve_category_pattern,
    write_entries,
)
from .core import Entry, InvalidBatchError, derive_ruby, process_batch, set_debug_logging
from .natural import natural_sort
from .nlp import MecabTokenizer, TokenizerUnavailableError
from .tools import DICDIR_ENV, describe_dictionary


def _read_local_version() -> str | None:
    try:
        pyproject_path = Path(__file__).resolve().parents[2] / "pyproject.toml"
    except IndexError:  # pragma: no cover - installed without a source tree
        return None
    try:
        with pyproject_path.open("rb") as fh:
            data = tomllib.load(fh)
    except (FileNotFoundError, tomllib.TOMLDecodeError):
        return None
    return data.get("project", {}).get("version")


try:
    __version__ = metadata.version("pathruby")
except metadata.PackageNotFoundError:
    __version__ = _read_local_version() or "0.0.0+unknown"


def _add_version_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"pathruby {__version__}",
    )


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description=(
            "Build a path/name/text/ruby/category table from a folder of files. "
            "Use `pathruby sort` for natural ordering and `pathruby ruby` for readings."
        ),
    )
    _add_version_flag(ap)
    ap.add_argument(
        "input_path",
        help="Directory to scan, or a .json file holding a list of path segment lists.",
    )
    ap.add_argument(
        "-p",
        "--pattern",
        help=(
            "Category pattern; ${DIR} is replaced by each file's directory. "
            "Defaults to $PATHRUBY_CATEGORY_PATTERN or '<folder name>_${DIR}'."
        ),
    )
    ap.add_argument(
        "-o",
        "--output",
        help="Output file (default: next to the input, named after it).",
    )
    ap.add_argument(
        "-f",
        "--format",
        choices=OUTPUT_FORMATS,
        default="csv",
        help="Output format (default: csv).",
    )
    ap.add_argument(
        "--exclude",
        action="append",
        default=[],
        metavar="GLOB",
        help="Skip files whose relative path or name matches GLOB (repeatable; directory input only).",
    )
    ap.add_argument(
        "--stdout",
        action="store_true",
        help="Print the table to stdout instead of writing a file.",
    )
    ap.add_argument(
        "--preview",
        action="store_true",
        help="Also show the resulting entries as a table.",
    )
    ap.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress and status output.",
    )
    ap.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging (affix patterns, per-entry derivations).",
    )
    return ap


def build_sort_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Sort strings in natural order (2 before 10).")
    _add_version_flag(ap)
    ap.add_argument(
        "values",
        nargs="*",
        help="Strings to sort. Pass '-' or nothing to read one string per line from stdin.",
    )
    ap.add_argument(
        "--indices",
        action="store_true",
        help="Print the sorting permutation (original 0-based indices) instead of the strings.",
    )
    return ap


def build_ruby_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Print the katakana reading MeCab assigns to text.")
    _add_version_flag(ap)
    ap.add_argument(
        "text",
        nargs="+",
        help="Text to read. Wrap the phrase in quotes if it contains spaces.",
    )
    return ap


def build_tools_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="pathruby helper utilities")
    _add_version_flag(ap)
    subparsers = ap.add_subparsers(dest="tool_cmd")
    subparsers.add_parser(
        "dict-status",
        help="Show the MeCab dictionary used for readings.",
    )
    return ap


def _make_tokenizer() -> MecabTokenizer:
    try:
        return MecabTokenizer()
    except TokenizerUnavailableError as exc:
        raise SystemExit(str(exc)) from exc


def _print_preview(console: Console, entries: list[Entry]) -> None:
    table = Table(show_lines=False)
    for column in ("path", "name", "text", "ruby", "category"):
        table.add_column(column)
    for entry in entries:
        table.add_row(*entry.as_row())
    console.print(table)


def _run_process(args: argparse.Namespace) -> int:
    set_debug_logging(bool(args.debug))
    console = Console(stderr=True, quiet=args.quiet)
    inp_path = Path(args.input_path).expanduser().resolve()
    if not inp_path.exists():
        raise SystemExit(f"Input path not found: {inp_path}")

    if inp_path.is_dir():
        try:
            paths = collect_paths(inp_path, exclude=args.exclude)
        except OSError as exc:
            raise SystemExit(str(exc)) from exc
        if not paths:
            raise SystemExit(f"No files found in directory: {inp_path}")
        root_name = inp_path.name
    else:
        if args.exclude:
            raise SystemExit("--exclude can only be used with a directory input.")
        try:
            paths = load_path_list(inp_path)
        except (InvalidBatchError, OSError) as exc:
            raise SystemExit(str(exc)) from exc
        root_name = inp_path.stem
    pattern = resolve_category_pattern(root_name, args.pattern)

    tokenizer = _make_tokenizer()
    progress = Progress(
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeRemainingColumn(),
        console=console,
        transient=True,
        disable=args.quiet,
    )
    with progress:
        task = progress.add_task("Reading names", total=len(paths))

        def _on_progress(event: dict[str, object]) -> None:
            if event.get("event") == "entry":
                progress.update(task, completed=event.get("index"))

        try:
            entries = process_batch(paths, pattern, tokenizer=tokenizer, progress=_on_progress)
        except InvalidBatchError as exc:
            raise SystemExit(str(exc)) from exc

    if args.preview:
        _print_preview(console, entries)

    if args.stdout:
        sys.stdout.write(format_entries(entries, args.format))
        sys.stdout.write("\n")
        return 0

    output_path = Path(args.output).expanduser() if args.output else default_output_path(inp_path, args.format)
    try:
        write_entries(entries, output_path, args.format)
    except OSError as exc:
        raise SystemExit(str(exc)) from exc
    console.print(f"Wrote {len(entries)} entries to {output_path}")
    return 0


def _run_sort(args: argparse.Namespace) -> int:
    values = list(args.values)
    if not values or values == ["-"]:
        values = sys.stdin.read().splitlines()
    order = natural_sort(values)
    for index in order:
        print(index if args.indices else values[index])
    return 0


def _run_ruby(args: argparse.Namespace) -> int:
    text = " ".join(args.text).strip()
    if not text:
        raise SystemExit("No text provided for conversion.")
    print(derive_ruby(text, _make_tokenizer()))
    return 0


def _run_tools(args: argparse.Namespace) -> int:
    if not args.tool_cmd:
        raise SystemExit("A tools subcommand is required. Use --help for options.")

    if args.tool_cmd == "dict-status":
        status = describe_dictionary()
        if status.available:
            print(f"{status.name} dictionary: {status.path} (from {status.source})")
        else:
            print(f"{status.name} dictionary: MISSING ({status.detail})")
        env_dir = os.environ.get(DICDIR_ENV)
        if env_dir:
            print(f"{DICDIR_ENV} is set to: {env_dir}")
        return 0 if status.available else 1

    raise SystemExit(f"Unknown tools subcommand: {args.tool_cmd}")


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    if argv and argv[0] == "sort":
        return _run_sort(build_sort_parser().parse_args(argv[1:]))
    if argv and argv[0] == "ruby":
        return _run_ruby(build_ruby_parser().parse_args(argv[1:]))
    if argv and argv[0] == "tools":
        return _run_tools(build_tools_parser().parse_args(argv[1:]))
    if argv and argv[0] == "process":
        argv = argv[1:]

    parser = build_parser()
    if not argv:
        parser.print_help()
        return 0
    return _run_process(parser.parse_args(argv))


if __name__ == "__main__":
    raise SystemExit(main())

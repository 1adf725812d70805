from __future__ import annotations

import json
import os
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, Sequence

from .core import CATEGORY_PLACEHOLDER, PATH_SEPARATOR, Entry, InvalidBatchError
from .natural import natural_sort

CATEGORY_PATTERN_ENV = "PATHRUBY_CATEGORY_PATTERN"
OUTPUT_FORMATS = ("csv", "json")


def default_category_pattern(root_name: str) -> str:
    return f"{root_name}_{CATEGORY_PLACEHOLDER}"


def resolve_category_pattern(root_name: str, explicit: str | None = None) -> str:
    if explicit is not None:
        return explicit
    env_pattern = os.environ.get(CATEGORY_PATTERN_ENV)
    if env_pattern:
        return env_pattern
    return default_category_pattern(root_name)


def parse_path_list(payload: object) -> list[list[str]]:
    """
    Validate a decoded JSON payload as a batch of path segment lists.

    Plain strings are accepted too and split on ``/``.
    """
    if not isinstance(payload, list):
        raise InvalidBatchError("Path list must be a JSON array.")
    paths: list[list[str]] = []
    for index, item in enumerate(payload):
        if isinstance(item, str):
            paths.append(item.split(PATH_SEPARATOR))
            continue
        if not isinstance(item, list) or not all(isinstance(segment, str) for segment in item):
            raise InvalidBatchError(f"Path #{index} must be a string or an array of strings.")
        paths.append(list(item))
    return paths


def load_path_list(path: Path) -> list[list[str]]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise InvalidBatchError(f"Malformed path list in {path}: {exc}") from exc
    return parse_path_list(payload)


def _is_excluded(relative: Sequence[str], patterns: Sequence[str]) -> bool:
    joined = PATH_SEPARATOR.join(relative)
    name = relative[-1]
    return any(fnmatchcase(joined, pattern) or fnmatchcase(name, pattern) for pattern in patterns)


def collect_paths(root: Path, exclude: Iterable[str] = ()) -> list[list[str]]:
    """
    List every file below ``root`` as segments relative to ``root``.

    Each directory's files come first, then its subdirectories, both in
    natural order.
    """
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")
    patterns = list(exclude)
    collected: list[list[str]] = []

    def _walk(directory: Path, prefix: list[str]) -> None:
        children = list(directory.iterdir())
        ordered = [children[index] for index in natural_sort(child.name for child in children)]
        files = [child for child in ordered if child.is_file()]
        subdirs = [child for child in ordered if child.is_dir()]
        for child in files:
            relative = prefix + [child.name]
            if not _is_excluded(relative, patterns):
                collected.append(relative)
        for child in subdirs:
            _walk(child, prefix + [child.name])

    _walk(root, [])
    return collected


def format_csv(entries: Iterable[Entry]) -> str:
    lines = []
    for entry in entries:
        lines.append(",".join(json.dumps(field, ensure_ascii=False) for field in entry.as_row()))
    return "\n".join(lines)


def format_json(entries: Iterable[Entry]) -> str:
    return json.dumps([entry.as_row() for entry in entries], ensure_ascii=False, indent=2)


def format_entries(entries: Iterable[Entry], fmt: str) -> str:
    if fmt == "csv":
        return format_csv(entries)
    if fmt == "json":
        return format_json(entries)
    raise ValueError(f"Unknown output format: {fmt}")


def default_output_path(input_path: Path, fmt: str) -> Path:
    if input_path.is_dir():
        return input_path.parent / f"{input_path.name}.{fmt}"
    candidate = input_path.with_suffix(f".{fmt}")
    if candidate == input_path:
        # Never overwrite the path list itself.
        return input_path.with_name(f"{input_path.stem}.entries.{fmt}")
    return candidate


def write_entries(entries: Sequence[Entry], output_path: Path, fmt: str) -> Path:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(format_entries(entries, fmt), encoding="utf-8")
    return output_path

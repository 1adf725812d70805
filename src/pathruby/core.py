from __future__ import annotations

import re
import sys
import unicodedata
from dataclasses import astuple, dataclass
from os.path import commonprefix
from pathlib import PurePosixPath
from typing import Callable, Iterable, Sequence

from .natural import NaturalKey
from .nlp import READING_FIELD, MecabTokenizer, Tokenizer

__all__ = [
    "AffixMask",
    "Entry",
    "InvalidBatchError",
    "CATEGORY_PLACEHOLDER",
    "derive_category",
    "derive_ruby",
    "file_stem",
    "join_path",
    "normalize_name",
    "process_batch",
    "set_debug_logging",
]

CATEGORY_PLACEHOLDER = "${DIR}"
PATH_SEPARATOR = "/"

# Stands in for one digit run while affixes are computed.
_DIGIT_SENTINEL = "\0"
_DIGIT_RUN = re.compile(r"\d+")
_DIGIT_WILDCARD = r"\d+"

_DEBUG_LOG = False

ProgressCallback = Callable[[dict[str, object]], None]


def set_debug_logging(enabled: bool) -> None:
    global _DEBUG_LOG
    _DEBUG_LOG = enabled


def _debug_log(message: str) -> None:
    if _DEBUG_LOG:
        print(f"[pathruby debug] {message}", file=sys.stderr)


class InvalidBatchError(ValueError):
    """Raised when a batch violates its preconditions; no entries are produced."""


@dataclass(frozen=True, slots=True)
class Entry:
    path: str
    name: str
    text: str
    ruby: str
    category: str

    def as_row(self) -> list[str]:
        return list(astuple(self))


def join_path(segments: Iterable[str]) -> str:
    return PATH_SEPARATOR.join(segments)


def normalize_name(name: str) -> str:
    return unicodedata.normalize("NFKC", name)


def file_stem(filename: str) -> str:
    """
    Return ``filename`` without its final extension.

    Dotfiles such as ``.png`` keep their full name and a trailing dot is an
    empty extension (``photo.`` -> ``photo``). Names with no final component
    (``""``, ``"."``, ``".."``) have no stem.
    """
    name = PurePosixPath(filename).name
    if not name or name == "..":
        raise InvalidBatchError(f"Cannot take a file stem from {filename!r}.")
    index = name.rfind(".")
    if index > 0:
        return name[:index]
    return name


def _mask_digits(name: str) -> str:
    return _DIGIT_RUN.sub(_DIGIT_SENTINEL, name)


def _unmask(affix: str) -> str:
    return _DIGIT_WILDCARD.join(re.escape(piece) for piece in affix.split(_DIGIT_SENTINEL))


@dataclass(frozen=True)
class AffixMask:
    """Batch-wide decoration shared by every name, with digit runs as wildcards."""

    masked_prefix: str
    masked_suffix: str
    prefix_pattern: re.Pattern[str]
    suffix_pattern: re.Pattern[str]

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "AffixMask":
        if not names:
            raise InvalidBatchError("An affix mask needs at least one name.")
        masked = [_mask_digits(name) for name in names]
        prefix = commonprefix(masked)
        suffix = commonprefix([value[::-1] for value in masked])[::-1]
        return cls(
            masked_prefix=prefix,
            masked_suffix=suffix,
            prefix_pattern=re.compile(f"^{_unmask(prefix)}"),
            suffix_pattern=re.compile(f"{_unmask(suffix)}$"),
        )

    def strip(self, name: str) -> str:
        text = self.prefix_pattern.sub("", name, count=1)
        return self.suffix_pattern.sub("", text, count=1)


def derive_ruby(name: str, tokenizer: Tokenizer) -> str:
    """Concatenate each token's reading (detail field 7) or, lacking one, its surface."""
    pieces: list[str] = []
    for token in tokenizer.tokenize(name):
        detail = token.detail
        if len(detail) > READING_FIELD:
            pieces.append(detail[READING_FIELD])
        else:
            pieces.append(token.surface)
    return "".join(pieces)


def derive_category(pattern: str, directory: Sequence[str]) -> str:
    return pattern.replace(CATEGORY_PLACEHOLDER, join_path(directory))


@dataclass
class _PendingEntry:
    segments: tuple[str, ...]
    directory: tuple[str, ...]
    stem: str
    sort_key: tuple[tuple[NaturalKey, ...], NaturalKey]


def _validate_batch(paths: object, category_pattern: object) -> list[tuple[str, ...]]:
    if not isinstance(category_pattern, str):
        raise InvalidBatchError("Category pattern must be a string.")
    if isinstance(paths, (str, bytes)) or not isinstance(paths, Iterable):
        raise InvalidBatchError("Batch must be a sequence of paths.")
    validated: list[tuple[str, ...]] = []
    for index, path in enumerate(paths):
        if isinstance(path, (str, bytes)) or not isinstance(path, Iterable):
            raise InvalidBatchError(f"Path #{index} must be a sequence of segments.")
        segments = tuple(path)
        if not segments:
            raise InvalidBatchError(f"Path #{index} is empty.")
        if not all(isinstance(segment, str) for segment in segments):
            raise InvalidBatchError(f"Path #{index} contains a non-string segment.")
        validated.append(segments)
    if not validated:
        raise InvalidBatchError("Batch is empty.")
    return validated


def _prepare(segments: tuple[str, ...]) -> _PendingEntry:
    *directory, filename = segments
    stem = file_stem(normalize_name(filename))
    return _PendingEntry(
        segments=segments,
        directory=tuple(directory),
        stem=stem,
        sort_key=(tuple(NaturalKey(item) for item in directory), NaturalKey(stem)),
    )


def process_batch(
    paths: Iterable[Sequence[str]],
    category_pattern: str,
    *,
    tokenizer: Tokenizer | None = None,
    progress: ProgressCallback | None = None,
) -> list[Entry]:
    """
    Derive one :class:`Entry` per path, ordered naturally by (directory, stem).

    Every name is seen before any ``text`` is produced, since the shared
    prefix/suffix depends on the whole batch. Invalid input raises
    :class:`InvalidBatchError` before any work is done; tokenizer errors
    propagate unchanged.
    """
    validated = _validate_batch(paths, category_pattern)
    pending = [_prepare(segments) for segments in validated]
    pending.sort(key=lambda item: item.sort_key)
    mask = AffixMask.from_names([item.stem for item in pending])
    _debug_log(
        f"{len(pending)} entries; prefix /{mask.prefix_pattern.pattern}/ suffix /{mask.suffix_pattern.pattern}/"
    )

    if tokenizer is None:
        tokenizer = MecabTokenizer()

    entries: list[Entry] = []
    total = len(pending)
    for index, item in enumerate(pending):
        entry = Entry(
            path=join_path(item.segments),
            name=item.stem,
            text=mask.strip(item.stem),
            ruby=derive_ruby(item.stem, tokenizer),
            category=derive_category(category_pattern, item.directory),
        )
        _debug_log(f"{entry.path}: text={entry.text!r} ruby={entry.ruby!r} category={entry.category!r}")
        entries.append(entry)
        if progress is not None:
            progress({"event": "entry", "index": index + 1, "total": total, "path": entry.path})
    return entries

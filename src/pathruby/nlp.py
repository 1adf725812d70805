from __future__ import annotations

import shlex
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Protocol

from .tools import get_mecab_dicdir

__all__ = [
    "Token",
    "Tokenizer",
    "MecabTokenizer",
    "TokenizerUnavailableError",
    "READING_FIELD",
]

# IPADIC features: pos, pos1, pos2, pos3, cType, cForm, base, reading, pron.
READING_FIELD = 7


class TokenizerUnavailableError(RuntimeError):
    """Raised when the MeCab backend cannot be initialized."""


@dataclass(frozen=True, slots=True)
class Token:
    surface: str
    detail: tuple[str, ...] = ()


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> Iterable[Token]: ...


def _feature_fields(feature: object) -> tuple[str, ...]:
    if feature is None:
        return ()
    if isinstance(feature, str):
        return tuple(feature.split(","))
    return tuple("" if field is None else str(field) for field in feature)  # type: ignore[union-attr]


class MecabTokenizer:
    """Fugashi-based tokenizer producing IPADIC feature tuples."""

    def __init__(self, dicdir: str | None = None) -> None:
        try:
            from fugashi import GenericTagger  # type: ignore
        except ImportError as exc:
            raise TokenizerUnavailableError(
                "Ruby derivation requires 'fugashi' (MeCab) to be installed."
            ) from exc

        resolved = dicdir or get_mecab_dicdir()
        if resolved is None:
            raise TokenizerUnavailableError(
                "No IPADIC dictionary detected; install 'ipadic' or set PATHRUBY_MECAB_DICDIR."
            )
        args = f"-d {shlex.quote(str(resolved))}"
        mecabrc = _find_mecabrc(resolved)
        if mecabrc is not None:
            args += f" -r {shlex.quote(mecabrc)}"
        else:
            warnings.warn(
                f"No mecabrc found next to '{resolved}'; relying on the system MeCab configuration.",
                RuntimeWarning,
                stacklevel=2,
            )
        try:
            self._tagger = GenericTagger(args)
        except RuntimeError as exc:
            raise TokenizerUnavailableError(
                f"Failed to initialize MeCab dictionary at '{resolved}': {exc}"
            ) from exc

    def tokenize(self, text: str) -> Iterator[Token]:
        if not text:
            return
        for node in self._tagger(text):
            surface = node.surface
            if not surface:
                continue
            yield Token(surface=surface, detail=_feature_fields(getattr(node, "feature", None)))


def _find_mecabrc(dicdir: Path | str) -> str | None:
    candidate = Path(str(dicdir)) / "mecabrc"
    if candidate.exists():
        return str(candidate)
    return None

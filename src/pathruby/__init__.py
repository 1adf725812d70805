from .core import (
    AffixMask,
    Entry,
    InvalidBatchError,
    process_batch,
)
from .natural import NaturalKey, compare, natural_sort, natural_sorted
from .nlp import MecabTokenizer, Token, Tokenizer, TokenizerUnavailableError

__all__ = [
    "AffixMask",
    "Entry",
    "InvalidBatchError",
    "process_batch",
    "NaturalKey",
    "compare",
    "natural_sort",
    "natural_sorted",
    "MecabTokenizer",
    "Token",
    "Tokenizer",
    "TokenizerUnavailableError",
]

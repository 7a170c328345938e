"""N-gram Markov chains with reproducible, frequency-weighted sampling."""

from .chain import END_TOKEN, START_TOKEN, Chain, RandomSource
from .errors import (
    MarkovError,
    NgramLengthMismatchError,
    StorageError,
    UnknownNgramStateError,
)
from .ngram import NGram, Pair, SparseRow, make_pairs, ngram_key, repeat
from .pool import SymbolPool
from .reply import build_chain, desugar_content, generate_sequence, infer_reply
from .settings import ReplySettings
from .storage import MarkovStorage

__all__ = [
    "Chain",
    "END_TOKEN",
    "MarkovError",
    "MarkovStorage",
    "NGram",
    "NgramLengthMismatchError",
    "Pair",
    "RandomSource",
    "ReplySettings",
    "START_TOKEN",
    "SparseRow",
    "StorageError",
    "SymbolPool",
    "UnknownNgramStateError",
    "build_chain",
    "desugar_content",
    "generate_sequence",
    "infer_reply",
    "make_pairs",
    "ngram_key",
    "repeat",
]

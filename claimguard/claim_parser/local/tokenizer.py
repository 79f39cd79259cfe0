# claimguard/claim_parser/local/tokenizer.py

"""
Turns raw claim text into a fixed-length (word, index) sequence for the tagging model.
"""
import re
from typing import Dict, List, Optional, Tuple

import numpy as np

PAD_TOKEN = "[PAD]"
PAD_INDEX = 0
OOV_INDEX = 1
HASH_BUCKETS = 1000

_TOKEN_PATTERN = re.compile(r"\b[\w']+\b|[.,!?;]")


def tokenize(text: str) -> List[str]:
    """Words (with apostrophes) and single punctuation marks; whitespace split if nothing matches."""
    tokens = _TOKEN_PATTERN.findall(text)
    if not tokens:
        tokens = re.split(r"\s+", text)
    return tokens


def hash_index(word: str) -> int:
    """
    Deterministic pseudo-index in [1, 1000] used when no vocabulary is loaded.

    This is a 32-bit rolling string hash, not an embedding: tagging accuracy
    in this mode is degraded and only useful for smoke-testing a model.
    """
    h = 0
    for ch in word:
        h = (31 * h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h) % HASH_BUCKETS + 1


def lookup_index(word: str, word_index: Optional[Dict[str, int]]) -> int:
    if word_index is None:
        return hash_index(word)
    # Index 0 is reserved for [PAD]; a word mapped to 0 counts as a miss
    index = word_index.get(word) or word_index.get(word.lower())
    return index or OOV_INDEX


def encode_text(
    text: str,
    seq_length: int,
    word_index: Optional[Dict[str, int]] = None,
) -> List[Tuple[str, int]]:
    """
    Produces exactly seq_length (word, index) pairs: truncated, then right-padded with [PAD]/0.
    """
    words = tokenize(text)[:seq_length]
    sequence = [(word, lookup_index(word, word_index)) for word in words]
    sequence.extend([(PAD_TOKEN, PAD_INDEX)] * (seq_length - len(sequence)))
    return sequence


def to_input_tensor(token_ids: List[int], dtype: str = "int32") -> np.ndarray:
    """Batch-of-one model input of shape [1, len(token_ids)]."""
    return np.asarray([token_ids], dtype=dtype)

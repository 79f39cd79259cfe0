# claimguard/claim_parser/local/bio_decoder.py

"""
Stitches per-token BIO tags back into entity spans.
"""
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .tag_vocabulary import (
    BEGIN_PREFIX,
    INSIDE_PREFIX,
    OUTSIDE_TAG,
    TagVocabulary,
    entity_type_of,
)
from .tokenizer import PAD_TOKEN


@dataclass(frozen=True)
class EntitySpan:
    entity_type: str
    text: str
    start: int


@dataclass(frozen=True)
class TaggedToken:
    """A single non-O position, whether or not it ended up inside a span."""
    entity_type: str
    word: str
    position: int


def resolve_tags(indices: Sequence[int], vocabulary: TagVocabulary) -> List[str]:
    return [vocabulary.tag_for(index) for index in indices]


def decode_spans(words: Sequence[str], tags: Sequence[str]) -> List[EntitySpan]:
    """
    Greedy left-to-right BIO merge.

    Scanning stops at the first [PAD] word. An I-T tag only extends an open
    span of type T; any other tag closes the open span, and a dangling I- tag
    never opens one.
    """
    spans: List[EntitySpan] = []
    open_type: Optional[str] = None
    open_words: List[str] = []
    open_start = 0

    def close() -> None:
        nonlocal open_type, open_words
        if open_type is not None:
            spans.append(EntitySpan(open_type, " ".join(open_words), open_start))
        open_type = None
        open_words = []

    for position, (word, tag) in enumerate(zip(words, tags)):
        if word == PAD_TOKEN:
            break

        if tag.startswith(BEGIN_PREFIX):
            close()
            open_type = tag[len(BEGIN_PREFIX):]
            open_words = [word]
            open_start = position
        elif tag.startswith(INSIDE_PREFIX) and open_type == tag[len(INSIDE_PREFIX):]:
            open_words.append(word)
        else:
            close()

    close()
    return spans


def iter_tagged_tokens(words: Sequence[str], tags: Sequence[str]) -> Iterator[TaggedToken]:
    """Every non-O position before the padding, in order."""
    for position, (word, tag) in enumerate(zip(words, tags)):
        if word == PAD_TOKEN:
            return
        if tag == OUTSIDE_TAG:
            continue
        entity_type = entity_type_of(tag)
        if entity_type is not None:
            yield TaggedToken(entity_type, word, position)

# claimguard/claim_parser/local/assets.py

"""
Parses the optional model_assets.json that ships next to an uploaded tagging model.
"""
import json
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Union

from .tag_vocabulary import TagVocabulary, vocabulary_or_default


@dataclass(frozen=True)
class ModelAssets:
    """Vocabulary (word -> index) and tag map (index string -> tag); either may be absent."""
    word_index: Optional[Dict[str, int]] = None
    idx2tag: Optional[Dict[str, str]] = None

    @property
    def tag_vocabulary(self) -> TagVocabulary:
        return vocabulary_or_default(self.idx2tag)


def parse_model_assets(raw: Union[bytes, str]) -> ModelAssets:
    """
    Never raises: a malformed file leaves both fields absent, which puts
    the tokenizer into hash-fallback mode and the decoder onto the built-in tags.
    """
    try:
        assets = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        logging.warning(f"Failed to parse model_assets.json: {e}")
        return ModelAssets()

    if not isinstance(assets, dict):
        logging.warning("model_assets.json is not a JSON object; ignoring it.")
        return ModelAssets()

    word_index = assets.get("word_index")
    if word_index is not None and not isinstance(word_index, dict):
        logging.warning("Ignoring word_index: expected an object of word -> index.")
        word_index = None

    idx2tag = assets.get("idx2tag")
    if idx2tag is not None and not isinstance(idx2tag, dict):
        logging.warning("Ignoring idx2tag: expected an object of index -> tag.")
        idx2tag = None

    logging.info(
        f"Assets loaded! Vocab: {len(word_index or {})}, Tags: {len(idx2tag or {})}"
    )
    return ModelAssets(word_index=word_index or None, idx2tag=idx2tag or None)

# claimguard/claim_parser/local/model_context.py

"""
Process-scoped handles for the local models.

One LocalModelContext is created by the application and passed explicitly
through the local extraction path. Each model loads at most once; asking
again returns the cached handle.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np
from sentence_transformers import SentenceTransformer

from claimguard import config
from .assets import ModelAssets, parse_model_assets
from .tagging_model import ModelFile, TaggingModel, load_tagging_model, split_model_files


def _load_default_encoder() -> SentenceTransformer:
    logging.info(f"Loading embedding model {config.EMBEDDING_MODEL}")
    return SentenceTransformer(config.EMBEDDING_MODEL)


class LocalModelContext:
    def __init__(self, encoder_factory: Optional[Callable[[], Any]] = None):
        self.custom_model: Optional[TaggingModel] = None
        self.assets = ModelAssets()
        self._sentence_encoder: Optional[Any] = None
        self._encoder_factory = encoder_factory or _load_default_encoder

    @property
    def has_custom_model(self) -> bool:
        return self.custom_model is not None

    def load_sentence_encoder(self) -> Any:
        if self._sentence_encoder is not None:
            return self._sentence_encoder
        start = time.time()
        self._sentence_encoder = self._encoder_factory()
        logging.info(f"[Timing] Sentence encoder ready in {time.time() - start:.2f}s")
        return self._sentence_encoder

    def embed(self, text: str) -> np.ndarray:
        """Whole-text embedding as a float32 batch of one."""
        encoder = self.load_sentence_encoder()
        return np.asarray(encoder.encode([text]), dtype="float32")

    def use_custom_model(self, model: TaggingModel, assets: Optional[ModelAssets] = None) -> None:
        self.custom_model = model
        self.assets = assets or ModelAssets()

    def load_custom_model_from_files(
        self,
        files: Sequence[ModelFile],
        assets_file: Optional[ModelFile] = None,
    ) -> TaggingModel:
        """
        Loads an uploaded tagging model (model.json + .bin shards, optional assets).

        The previous model and vocabulary stay in place if loading fails.
        """
        description, shards, assets_file = split_model_files(files, assets_file)

        if assets_file is not None:
            assets = parse_model_assets(assets_file[1])
        else:
            logging.warning("No model_assets.json found. Using fallback tags and dummy tokenization.")
            assets = ModelAssets()

        model = load_tagging_model(description, shards)
        self.use_custom_model(model, assets)
        logging.info("Success: Custom tagging model loaded!")
        return model

    def status(self) -> Dict[str, Any]:
        return {
            "custom_model_loaded": self.has_custom_model,
            "sentence_encoder_loaded": self._sentence_encoder is not None,
            "vocabulary_size": len(self.assets.word_index or {}),
            "tag_count": len(self.assets.tag_vocabulary),
        }

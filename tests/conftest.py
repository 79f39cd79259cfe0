"""Pytest configuration and shared fixtures."""

import io
import json
from typing import List, Optional, Sequence

import numpy as np
import pytest
import torch
from langchain_core.language_models import FakeListChatModel

from claimguard import clients
from claimguard.claim_parser.local.assets import ModelAssets
from claimguard.claim_parser.local.model_context import LocalModelContext
from claimguard.claim_parser.local.tagging_model import InputSpec
from claimguard.claim_parser.local.tokenizer import to_input_tensor
from claimguard.knowledge_base.documents import sample_documents

# Small tag map used across the local-path tests
IDX2TAG = {
    "0": "O",
    "1": "B-Hospital",
    "2": "I-Hospital",
    "3": "B-Disease",
    "4": "I-Disease",
    "5": "B-Claim Cause",
    "6": "I-Claim Cause",
}


class FakeTaggingModel:
    """
    Returns a one-hot [1, L, num_tags] output for a fixed tag sequence.
    Positions past the sequence are tagged with `pad_tag`.
    """

    def __init__(
        self,
        tag_indices: Sequence[int],
        num_tags: int = len(IDX2TAG),
        seq_length: int = 16,
        dtype: str = "int32",
        pad_tag: int = 0,
        fail_with: Optional[Exception] = None,
        fail_times: int = 0,
        declare_input: bool = True,
    ):
        self.tag_indices = list(tag_indices)
        self.num_tags = num_tags
        self.pad_tag = pad_tag
        self.fail_with = fail_with
        self.fail_times = fail_times
        self.seen_dtypes: List[np.dtype] = []
        self._input_spec = InputSpec(name="tokens", shape=(None, seq_length), dtype=dtype) if declare_input else None

    @property
    def input_spec(self):
        return self._input_spec

    def encode(self, token_ids):
        dtype = self._input_spec.dtype if self._input_spec else "int32"
        return to_input_tensor(list(token_ids), dtype)

    def infer(self, inputs):
        self.seen_dtypes.append(inputs.dtype)
        if self.fail_times > 0:
            self.fail_times -= 1
            raise self.fail_with
        length = inputs.shape[-1]
        output = np.zeros((1, length, self.num_tags), dtype="float32")
        for position in range(length):
            tag = self.tag_indices[position] if position < len(self.tag_indices) else self.pad_tag
            output[0, position, tag] = 1.0
        return output


class FakeSentenceEncoder:
    def __init__(self, dimension: int = 8):
        self.dimension = dimension
        self.calls = 0

    def encode(self, texts):
        self.calls += 1
        return np.ones((len(texts), self.dimension), dtype="float32")


@pytest.fixture
def sentence_encoder() -> FakeSentenceEncoder:
    return FakeSentenceEncoder()


@pytest.fixture
def model_context(sentence_encoder) -> LocalModelContext:
    """Context whose sentence encoder is a cheap fake."""
    return LocalModelContext(encoder_factory=lambda: sentence_encoder)


@pytest.fixture
def tagging_assets() -> ModelAssets:
    return ModelAssets(word_index=None, idx2tag=dict(IDX2TAG))


@pytest.fixture
def documents():
    return sample_documents()


@pytest.fixture
def fake_llm(monkeypatch):
    """
    Replaces the Gemini factory with FakeListChatModel.

    Call the fixture with the replies the model should produce, in order;
    it returns the list of kwargs each factory call received.
    """
    factory_calls = []

    def install(*responses: str):
        model = FakeListChatModel(responses=list(responses))

        def factory(**kwargs):
            factory_calls.append(kwargs)
            return model

        monkeypatch.setattr(clients, "get_gemini_llm", factory)
        return factory_calls

    return install


@pytest.fixture
def failing_llm(monkeypatch):
    def factory(**kwargs):
        raise RuntimeError("API Key is missing. Please check your configuration.")

    monkeypatch.setattr(clients, "get_gemini_llm", factory)


@pytest.fixture
def make_tagging_model():
    """Factory for FakeTaggingModel instances."""
    return FakeTaggingModel


SHARD_NAMES = ["group1-shard1of2.bin", "group1-shard2of2.bin"]


class OneHotTagger(torch.nn.Module):
    """Tags every token with (token id mod num_tags)."""

    def __init__(self, num_tags: int):
        super().__init__()
        self.num_tags = num_tags

    def forward(self, tokens: torch.Tensor) -> torch.Tensor:
        ids = torch.remainder(tokens.long(), self.num_tags)
        return torch.nn.functional.one_hot(ids, self.num_tags).float()


def _model_description(seq_length: int = 16, manifest: bool = True) -> bytes:
    description = {
        "format": "torchscript",
        "inputs": [{"name": "tokens", "shape": [None, seq_length], "dtype": "int32"}],
    }
    if manifest:
        description["weightsManifest"] = [{"paths": list(SHARD_NAMES)}]
    return json.dumps(description).encode()


@pytest.fixture
def model_description():
    """Builds model.json content for the sharded test model."""
    return _model_description


@pytest.fixture
def model_files(tagging_assets):
    """model.json, two .bin shards (listed out of order) and model_assets.json."""
    buffer = io.BytesIO()
    torch.jit.save(torch.jit.script(OneHotTagger(len(tagging_assets.idx2tag))), buffer)
    archive = buffer.getvalue()
    middle = len(archive) // 2

    assets = {
        "word_index": {"patient": 7, "city": 1, "hospital": 2, "for": 14, "dengue": 3, ".": 21},
        "idx2tag": tagging_assets.idx2tag,
    }
    return [
        (SHARD_NAMES[1], archive[middle:]),
        ("model.json", _model_description()),
        (SHARD_NAMES[0], archive[:middle]),
        ("model_assets.json", json.dumps(assets).encode()),
    ]

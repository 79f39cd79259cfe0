# claimguard/claim_parser/local/local_extractor.py

"""
Offline claim extraction: tokenize, run the tagging model, stitch BIO tags,
route entities into buckets and score the claim domain.

extract_claim_details_local never raises; model failures come back as a
'Model Error' extraction.
"""
import asyncio
import logging
from typing import Any, List, Tuple

import numpy as np

from claimguard import config
from ..schema import NOT_SPECIFIED, UNKNOWN_INCIDENT, ClaimExtraction
from .bio_decoder import decode_spans, iter_tagged_tokens, resolve_tags
from .entity_rules import DomainScoreTable, ExtractionBuckets
from .model_context import LocalModelContext
from .tag_vocabulary import TagVocabulary
from .tagging_model import TaggingModel
from .tokenizer import encode_text

MODEL_ERROR = "Model Error"
CLASSIFICATION_RESULT = "Classification Result"
GENERAL_INCIDENT = "General Incident"


def assemble_extraction(
    incident_type: str,
    buckets: ExtractionBuckets,
    damage_description: str,
    key_topics: List[str],
) -> ClaimExtraction:
    return ClaimExtraction(
        incident_type=incident_type,
        incident_date=buckets.dates[0] if buckets.dates else NOT_SPECIFIED,
        location=", ".join(buckets.locations) or NOT_SPECIFIED,
        involved_parties=list(buckets.parties) if buckets.parties else ["Unknown"],
        damage_description=damage_description,
        estimated_cost=buckets.costs[0] if buckets.costs else NOT_SPECIFIED,
        key_topics=key_topics,
    )


def inspect_model_input(model: TaggingModel) -> Tuple[bool, int, str]:
    """
    Returns (requires_sequence, seq_length, dtype) from the model's declared input.

    A declared shape whose sequence length exceeds 10 means token ids;
    anything else is fed a whole-text embedding.
    """
    requires_sequence = False
    seq_length = config.DEFAULT_SEQUENCE_LENGTH
    dtype = "int32"

    spec = model.input_spec
    if spec is not None:
        if spec.shape:
            last_dim = spec.shape[-1]
            if last_dim and last_dim > 1:
                seq_length = last_dim
            if seq_length > 10:
                requires_sequence = True
        if spec.dtype:
            dtype = spec.dtype
    return requires_sequence, seq_length, dtype


def _is_dtype_error(error: Exception) -> bool:
    message = str(error).lower()
    return "dtype" in message or "scalar type" in message


def _coerce_dtype(tensor: np.ndarray) -> np.ndarray:
    if np.issubdtype(tensor.dtype, np.integer):
        return tensor.astype("float32")
    return tensor.astype("int64")


def run_inference(model: TaggingModel, tensor: np.ndarray) -> Any:
    """Runs the model, retrying once with the other element type on a dtype error."""
    try:
        return model.infer(tensor)
    except Exception as e:
        if not _is_dtype_error(e):
            raise
        logging.warning(f"Predict failed, retrying with coerced dtype: {e}")
        return model.infer(_coerce_dtype(tensor))


def normalize_output(output: Any) -> np.ndarray:
    """Multi-output models: the first list item or the first mapping value."""
    if isinstance(output, (list, tuple)):
        output = output[0]
    elif isinstance(output, dict):
        if not output:
            raise ValueError("Model returned no outputs.")
        output = next(iter(output.values()))
    return np.asarray(output)


def decode_entities(
    words: List[str],
    tag_indices: List[int],
    vocabulary: TagVocabulary,
    buckets: ExtractionBuckets,
) -> Tuple[str, List[str]]:
    """
    Fills the buckets from the decoded spans and returns (incident_type, key_topics).

    Every tagged token votes for its domains and contributes a
    '{Type}: {word}' topic, including tokens of dangling I- tags.
    """
    tags = resolve_tags(tag_indices, vocabulary)
    for span in decode_spans(words, tags):
        buckets.route(span)

    scores = DomainScoreTable()
    topics: List[str] = []
    for token in iter_tagged_tokens(words, tags):
        topic = f"{token.entity_type}: {token.word}"
        if topic not in topics:
            topics.append(topic)
        scores.add(token.entity_type)

    key_topics = topics[:config.MAX_KEY_TOPICS] or ["No Entities Found"]
    return scores.predict(buckets, UNKNOWN_INCIDENT), key_topics


def _extract_with_custom_model(text: str, context: LocalModelContext) -> ClaimExtraction:
    model = context.custom_model
    buckets = ExtractionBuckets()
    incident_type = UNKNOWN_INCIDENT
    description = ""
    key_topics = ["General Claim"]

    try:
        logging.info("Running Custom Model...")
        requires_sequence, seq_length, dtype = inspect_model_input(model)

        words: List[str] = []
        if requires_sequence:
            sequence = encode_text(text, seq_length, context.assets.word_index)
            words = [word for word, _ in sequence]
            tensor = model.encode([index for _, index in sequence])
            if str(tensor.dtype) != dtype:
                tensor = tensor.astype(dtype)
        else:
            tensor = context.embed(text)

        output = normalize_output(run_inference(model, tensor))

        if output.ndim == 3:
            tag_indices = output.argmax(axis=-1)[0].tolist()
            incident_type, key_topics = decode_entities(
                words, tag_indices, context.assets.tag_vocabulary, buckets
            )
            description = f"Extracted entities using Custom Model. Classified as: {incident_type}"
        else:
            incident_type = CLASSIFICATION_RESULT
            key_topics = [f"Class {i}: {float(v):.2f}" for i, v in enumerate(output.ravel())]

    except Exception as e:
        logging.warning(f"Custom model error: {e}")
        incident_type = MODEL_ERROR
        description = f"Error: {e}"
        key_topics = ["Execution Failed"]

    return assemble_extraction(incident_type, buckets, description, key_topics)


def extract_claim_details_local(text: str, context: LocalModelContext) -> ClaimExtraction:
    """
    Extracts claim details without any network call.

    With a custom tagging model loaded the result carries decoded entities;
    otherwise only the sentence encoder runs and a generic record is returned.
    """
    if context.has_custom_model:
        return _extract_with_custom_model(text, context)

    incident_type = UNKNOWN_INCIDENT
    try:
        context.embed(text)
        incident_type = GENERAL_INCIDENT
    except Exception as e:
        logging.warning(f"Sentence encoder unavailable, returning unclassified claim: {e}")

    return assemble_extraction(incident_type, ExtractionBuckets(), "", ["General Claim"])


async def extract_claim_details_local_async(text: str, context: LocalModelContext) -> ClaimExtraction:
    """Runs the CPU-bound local extraction in a worker thread."""
    return await asyncio.to_thread(extract_claim_details_local, text, context)

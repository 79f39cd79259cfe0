import numpy as np
import pytest

from claimguard.claim_parser.local.assets import ModelAssets
from claimguard.claim_parser.local.local_extractor import (
    CLASSIFICATION_RESULT,
    GENERAL_INCIDENT,
    MODEL_ERROR,
    extract_claim_details_local,
    extract_claim_details_local_async,
    inspect_model_input,
    normalize_output,
)
from claimguard.claim_parser.local.model_context import LocalModelContext
from claimguard.claim_parser.local.tagging_model import InputSpec
from claimguard.claim_parser.schema import NOT_SPECIFIED, UNKNOWN_INCIDENT

CLAIM_TEXT = "Patient City Hospital for dengue ."
# O B-Hospital I-Hospital O B-Disease O
CLAIM_TAGS = [0, 1, 2, 0, 3, 0]


class StaticOutputModel:
    def __init__(self, output, input_spec=None):
        self.output = output
        self.input_spec = input_spec

    def encode(self, token_ids):
        return np.asarray([list(token_ids)], dtype="int32")

    def infer(self, inputs):
        return self.output


def test_custom_model_extraction(model_context, make_tagging_model, tagging_assets):
    model_context.use_custom_model(make_tagging_model(CLAIM_TAGS), tagging_assets)

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert result.incident_type == "Medical / Health Claim"
    assert result.involved_parties == ["City Hospital"]
    assert result.key_topics == ["Hospital: City", "Hospital: Hospital", "Disease: dengue"]
    assert result.damage_description == "Extracted entities using Custom Model. Classified as: Medical / Health Claim"
    assert result.incident_date == NOT_SPECIFIED
    assert result.location == NOT_SPECIFIED
    assert result.estimated_cost == NOT_SPECIFIED


def test_tags_on_padding_are_ignored(model_context, make_tagging_model, tagging_assets):
    model_context.use_custom_model(make_tagging_model([0, 0, 0], pad_tag=1), tagging_assets)

    result = extract_claim_details_local("nothing to see", model_context)

    assert result.incident_type == UNKNOWN_INCIDENT
    assert result.involved_parties == ["Unknown"]
    assert result.key_topics == ["No Entities Found"]


def test_type_hint_used_when_no_domain_scores(model_context, make_tagging_model, tagging_assets):
    # B-Claim Cause I-Claim Cause
    model_context.use_custom_model(make_tagging_model([5, 6]), tagging_assets)

    result = extract_claim_details_local("burst pipe", model_context)

    assert result.incident_type == "burst pipe"


def test_key_topics_are_capped_and_deduplicated(model_context, make_tagging_model, tagging_assets):
    text = " ".join(f"word{i}" for i in range(20)) + " word0"
    model_context.use_custom_model(make_tagging_model([3] * 21, seq_length=32), tagging_assets)

    result = extract_claim_details_local(text, model_context)

    assert len(result.key_topics) == 15
    assert len(set(result.key_topics)) == 15
    assert result.key_topics[0] == "Disease: word0"


def test_dtype_error_is_retried_once_with_other_dtype(model_context, make_tagging_model, tagging_assets):
    model = make_tagging_model(
        CLAIM_TAGS,
        fail_with=RuntimeError("expected scalar type Long but found Int"),
        fail_times=1,
    )
    model_context.use_custom_model(model, tagging_assets)

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert result.incident_type == "Medical / Health Claim"
    assert [str(dtype) for dtype in model.seen_dtypes] == ["int32", "float32"]


def test_second_dtype_failure_gives_model_error(model_context, make_tagging_model, tagging_assets):
    model = make_tagging_model(CLAIM_TAGS, fail_with=RuntimeError("bad dtype"), fail_times=2)
    model_context.use_custom_model(model, tagging_assets)

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert result.incident_type == MODEL_ERROR
    assert len(model.seen_dtypes) == 2


def test_model_failure_returns_complete_record(model_context, make_tagging_model, tagging_assets):
    model = make_tagging_model(CLAIM_TAGS, fail_with=ValueError("shape mismatch"), fail_times=1)
    model_context.use_custom_model(model, tagging_assets)

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert result.incident_type == MODEL_ERROR
    assert result.damage_description == "Error: shape mismatch"
    assert result.key_topics == ["Execution Failed"]
    assert result.involved_parties == ["Unknown"]
    assert result.incident_date == NOT_SPECIFIED
    assert len(model.seen_dtypes) == 1


def test_non_sequence_output_is_a_classification(model_context):
    output = np.asarray([[0.1, 0.75, 0.15]], dtype="float32")
    model_context.use_custom_model(StaticOutputModel(output, InputSpec("tokens", (None, 64))))

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert result.incident_type == CLASSIFICATION_RESULT
    assert result.key_topics == ["Class 0: 0.10", "Class 1: 0.75", "Class 2: 0.15"]


def test_model_without_sequence_input_gets_embedding(model_context, sentence_encoder, make_tagging_model):
    model = make_tagging_model([], declare_input=False)
    model_context.use_custom_model(model)

    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert sentence_encoder.calls == 1
    assert str(model.seen_dtypes[0]) == "float32"
    assert result.incident_type == UNKNOWN_INCIDENT
    assert result.key_topics == ["No Entities Found"]


def test_without_custom_model_returns_general_incident(model_context, sentence_encoder):
    result = extract_claim_details_local(CLAIM_TEXT, model_context)

    assert sentence_encoder.calls == 1
    assert result.incident_type == GENERAL_INCIDENT
    assert result.key_topics == ["General Claim"]
    assert result.involved_parties == ["Unknown"]


def test_encoder_failure_returns_unknown_incident():
    def broken_factory():
        raise OSError("model files not found")

    result = extract_claim_details_local(CLAIM_TEXT, LocalModelContext(encoder_factory=broken_factory))

    assert result.incident_type == UNKNOWN_INCIDENT
    assert result.key_topics == ["General Claim"]


@pytest.mark.asyncio
async def test_async_wrapper_runs_extraction(model_context, make_tagging_model, tagging_assets):
    model_context.use_custom_model(make_tagging_model(CLAIM_TAGS), tagging_assets)

    result = await extract_claim_details_local_async(CLAIM_TEXT, model_context)

    assert result.incident_type == "Medical / Health Claim"


@pytest.mark.parametrize("shape, expected", [
    ((None, 128), (True, 128, "int32")),
    ((None, 8), (False, 8, "int32")),
    ((None, 1), (True, 512, "int32")),
    ((), (False, 512, "int32")),
])
def test_inspect_model_input(shape, expected):
    model = StaticOutputModel(None, InputSpec("tokens", shape))

    assert inspect_model_input(model) == expected


def test_inspect_model_input_without_declaration():
    assert inspect_model_input(StaticOutputModel(None)) == (False, 512, "int32")


def test_normalize_output_takes_first_output():
    first = np.zeros((1, 2, 3))

    assert normalize_output([first, np.ones(1)]).shape == (1, 2, 3)
    assert normalize_output({"logits": first, "extra": np.ones(1)}).shape == (1, 2, 3)


def test_uploaded_tag_map_with_pad_class_drives_decoding(model_context, make_tagging_model):
    assets = ModelAssets(idx2tag={"0": "PAD", "1": "O", "2": "B-Disease", "3": "I-Disease"})
    model_context.use_custom_model(make_tagging_model([1, 1, 2, 3, 1], num_tags=4), assets)

    result = extract_claim_details_local("Admitted with dengue fever .", model_context)

    assert result.incident_type == "Medical / Health Claim"
    assert result.key_topics == ["Disease: dengue", "Disease: fever"]
    assert result.involved_parties == ["Unknown"]
    assert result.estimated_cost == NOT_SPECIFIED

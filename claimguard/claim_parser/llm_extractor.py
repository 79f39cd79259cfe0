# claimguard/claim_parser/llm_extractor.py

import logging
from typing import Any, Dict, List

from langchain_core.messages import HumanMessage

from claimguard import config
from claimguard import clients
from claimguard.knowledge_base.documents import PolicyDocument, knowledge_base_parts

from .json_repair import LenientJsonOutputParser
from .schema import ClaimExtraction, ClaimInput

logger = logging.getLogger(__name__)


class ExtractionError(RuntimeError):
    pass


# --- JSON schema Gemini must answer with ---
EXTRACTION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "incident_type": {"type": "string", "description": "Type of incident (e.g., Car Accident, House Fire)"},
        "incident_date": {"type": "string", "description": "Date of the incident"},
        "location": {"type": "string", "description": "Location where it happened"},
        "involved_parties": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Names of people involved",
        },
        "damage_description": {
            "type": "string",
            "description": "Summary of the damage visible in evidence or described",
        },
        "estimated_cost": {"type": "string", "description": "Estimated cost if mentioned"},
        "key_topics": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Key topics extracted from the claim evidence that are specifically "
                           "relevant to the provided Knowledge Base context.",
        },
    },
    "required": ["incident_type", "damage_description", "key_topics"],
}

EXTRACTION_INSTRUCTION = """You are an insurance data extraction specialist.

You have access to the following Reference Policy Documents (Knowledge Base).
Use these documents to understand what information is "relevant" or "required" for a claim."""

EXTRACTION_TASK = """Task: Analyze the provided claim evidence (text description and/or attached files). Identify key topics and facts that are specifically relevant or required based on the Reference Policy Documents provided above.

If an image is provided, describe the visible damage relevant to the claim.

Claim Description / Notes:
"{claim_text}\""""


def build_extraction_message(claim_input: ClaimInput, documents: List[PolicyDocument]) -> HumanMessage:
    """
    One multimodal turn: instruction, every knowledge base document,
    the evidence file (if any), then the claim text and task.
    """
    parts: List[Dict[str, Any]] = [{"type": "text", "text": EXTRACTION_INSTRUCTION}]
    parts.extend(knowledge_base_parts(documents))
    if claim_input.file:
        parts.append({
            "type": "media",
            "mime_type": claim_input.file.mime_type,
            "data": claim_input.file.data,
        })
    parts.append({"type": "text", "text": EXTRACTION_TASK.format(claim_text=claim_input.text)})
    return HumanMessage(content=parts)


def create_extraction_chain():
    """
    Creates a new extraction chain using a JSON-mode Gemini model.
    Built per call so a key configured after startup is picked up.
    """
    llm = clients.get_gemini_llm(
        temperature=config.EXTRACTION_TEMPERATURE,
        response_schema=EXTRACTION_SCHEMA,
    )
    return llm | LenientJsonOutputParser()


async def extract_claim_details_async(
    claim_input: ClaimInput,
    documents: List[PolicyDocument],
) -> ClaimExtraction:
    """
    Extracts structured claim details with Gemini, grounded on the knowledge base.

    Raises:
        ExtractionError: If the model call fails or its reply cannot be parsed.
    """
    logger.info(
        f"Extracting claim details from {len(claim_input.text)} chars of text "
        f"(attachment: {claim_input.file.mime_type if claim_input.file else 'none'}) "
        f"against {len(documents)} document(s)"
    )
    try:
        chain = create_extraction_chain()
        message = build_extraction_message(claim_input, documents)
        data = await chain.ainvoke([message])
        return ClaimExtraction.model_validate(data)
    except Exception as e:
        logger.exception(f"Extraction failed: {e}")
        raise ExtractionError("Failed to extract claim details.") from e

# claimguard/verification/eligibility.py

import asyncio
import json
import logging
from typing import Any, Dict, List, Optional

from langchain_core.messages import HumanMessage

from claimguard import clients
from claimguard import config
from claimguard.claim_parser.json_repair import LenientJsonOutputParser
from claimguard.claim_parser.schema import ClaimExtraction
from claimguard.knowledge_base.documents import PolicyDocument, knowledge_base_parts
from .verification_schema import VerificationResult


class VerificationError(RuntimeError):
    pass


VERIFICATION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "is_eligible": {
            "type": "boolean",
            "description": "Is the claim eligible under any of the provided policy documents?",
        },
        "policy_matched": {
            "type": "string",
            "description": "The specific Policy Name and Section that covers this",
        },
        "reasoning": {
            "type": "string",
            "description": "Detailed explanation referencing specific terms from the Knowledge Base",
        },
        "suggested_policy": {
            "type": "string",
            "description": "If ineligible, suggest which type of insurance from the Knowledge Base "
                           "might apply, or 'None'",
        },
        "confidence_score": {"type": "number", "description": "Confidence score between 0 and 1"},
    },
    "required": ["is_eligible", "reasoning", "confidence_score"],
}

UNDERWRITER_INSTRUCTION = """You are a senior insurance underwriter agent.

You have access to the following Reference Policy Documents (Knowledge Base)."""

VERIFICATION_TASK = """Here are the extracted details from a new claim:
{extraction_json}

Task:
1. Analyze the claim details STRICTLY against the Reference Policy Documents provided above.
2. Determine if the claim is eligible for coverage under ANY of the documents.
3. Check for any exclusions mentioned in the matched policy.
4. Provide reasoning based only on the text provided in the Reference Policy Documents.
5. If the claim is eligible, cite the specific policy name."""

OFFLINE_RESULT = VerificationResult(
    is_eligible=False,
    policy_matched="N/A",
    confidence_score=0,
    reasoning="⚠️ Offline Mode: Verification requires internet.",
    suggested_policy="Offline",
)


def build_verification_message(extraction: ClaimExtraction, documents: List[PolicyDocument]) -> HumanMessage:
    parts: List[Dict[str, Any]] = [{"type": "text", "text": UNDERWRITER_INSTRUCTION}]
    parts.extend(knowledge_base_parts(documents))
    parts.append({
        "type": "text",
        "text": VERIFICATION_TASK.format(extraction_json=json.dumps(extraction.model_dump(), indent=2)),
    })
    return HumanMessage(content=parts)


def create_verification_chain():
    # Thinking budget reserves room for reasoning while keeping the JSON reply within max_output_tokens
    llm = clients.get_gemini_llm(
        response_schema=VERIFICATION_SCHEMA,
        max_output_tokens=config.VERIFICATION_MAX_OUTPUT_TOKENS,
        thinking_budget=config.VERIFICATION_THINKING_BUDGET,
    )
    return llm | LenientJsonOutputParser()


async def verify_claim_eligibility_async(
    extraction: ClaimExtraction,
    documents: List[PolicyDocument],
) -> VerificationResult:
    """
    Checks an extracted claim against the knowledge base with Gemini.

    Raises:
        VerificationError: If the model call fails or returns an invalid verdict.
    """
    logging.info(f"Verifying '{extraction.incident_type}' claim against {len(documents)} document(s)")
    try:
        chain = create_verification_chain()
        data = await chain.ainvoke([build_verification_message(extraction, documents)])
        return VerificationResult.model_validate(data)
    except Exception as e:
        logging.exception(f"Verification failed: {e}")
        raise VerificationError("Failed to verify claim.") from e


async def verify_claim_eligibility_local(
    extraction: ClaimExtraction,
    documents: List[PolicyDocument],
    online: Optional[bool] = None,
) -> VerificationResult:
    """
    Verification for the local extraction path. Offline it returns a zero-confidence
    'Offline Mode' verdict without touching the network; online it defers to Gemini.
    """
    if online is None:
        online = await asyncio.to_thread(clients.is_online)
    if not online:
        logging.warning("No connectivity; returning Offline Mode verification result.")
        return OFFLINE_RESULT.model_copy()
    return await verify_claim_eligibility_async(extraction, documents)

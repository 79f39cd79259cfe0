# claimguard/pipeline/handler.py

import logging
import time
from typing import List, Optional

from pydantic import BaseModel

from claimguard.claim_parser.local.model_context import LocalModelContext
from claimguard.claim_parser.main_parser import ExtractionMode, get_claim_extraction_async
from claimguard.claim_parser.schema import ClaimExtraction, ClaimInput, ProcessingStatus
from claimguard.knowledge_base.documents import PolicyDocument
from claimguard.verification.eligibility import (
    verify_claim_eligibility_async,
    verify_claim_eligibility_local,
)
from claimguard.verification.verification_schema import VerificationResult

MISSING_EVIDENCE = "Please provide text description or upload evidence."
MISSING_DOCUMENTS = "Please add at least one policy document to the Knowledge Base."
PROCESSING_FAILED = "An error occurred during processing. Please try again."


class ClaimProcessingResult(BaseModel):
    status: ProcessingStatus
    extraction: Optional[ClaimExtraction] = None
    verification: Optional[VerificationResult] = None
    error: Optional[str] = None


async def process_claim_async(
    claim_input: ClaimInput,
    documents: List[PolicyDocument],
    mode: ExtractionMode,
    model_context: LocalModelContext,
) -> ClaimProcessingResult:
    """
    High-level orchestration of one claim:
    1. Validate that there is evidence and a knowledge base
    2. Extract structured details (cloud or local)
    3. Verify eligibility against the knowledge base

    Each stage runs once; a failure ends the run with an ERROR result
    that still carries whatever was produced before it.
    """
    if not claim_input.text.strip() and not claim_input.file:
        return ClaimProcessingResult(status=ProcessingStatus.ERROR, error=MISSING_EVIDENCE)
    if not documents:
        return ClaimProcessingResult(status=ProcessingStatus.ERROR, error=MISSING_DOCUMENTS)

    start_total = time.time()
    status = ProcessingStatus.EXTRACTING
    extraction: Optional[ClaimExtraction] = None

    try:
        logging.info(f"[{status.value}] Processing claim in {mode} mode")
        extraction = await get_claim_extraction_async(claim_input, documents, mode, model_context)

        status = ProcessingStatus.VERIFYING
        logging.info(f"[{status.value}] Extraction complete: '{extraction.incident_type}'")
        if mode == "cloud":
            verification = await verify_claim_eligibility_async(extraction, documents)
        else:
            verification = await verify_claim_eligibility_local(extraction, documents)

        logging.info(f"[Timing] Total claim pipeline time: {time.time() - start_total:.2f}s")
        return ClaimProcessingResult(
            status=ProcessingStatus.COMPLETED,
            extraction=extraction,
            verification=verification,
        )

    except Exception:
        logging.exception(f"A critical error occurred while {status.value.lower()} the claim.")
        return ClaimProcessingResult(
            status=ProcessingStatus.ERROR,
            extraction=extraction,
            error=PROCESSING_FAILED,
        )

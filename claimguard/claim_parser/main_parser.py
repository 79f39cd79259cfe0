# claimguard/claim_parser/main_parser.py
import logging
import time
from typing import List, Literal

from claimguard.knowledge_base.documents import PolicyDocument

from .llm_extractor import extract_claim_details_async
from .local.local_extractor import extract_claim_details_local_async
from .local.model_context import LocalModelContext
from .schema import ClaimExtraction, ClaimInput

ExtractionMode = Literal["cloud", "local"]


async def get_claim_extraction_async(
    claim_input: ClaimInput,
    documents: List[PolicyDocument],
    mode: ExtractionMode,
    model_context: LocalModelContext,
) -> ClaimExtraction:
    """
    Routes a claim to the hosted extractor or to the offline tagging model.
    The local path reads the claim text only; attachments need the cloud path.
    """
    start = time.time()
    logging.info(f"Starting {mode} extraction")

    if mode == "cloud":
        extraction = await extract_claim_details_async(claim_input, documents)
    else:
        if claim_input.file:
            logging.info("Local extraction ignores the attached evidence file.")
        extraction = await extract_claim_details_local_async(claim_input.text, model_context)

    logging.info(f"[Timing] {mode} extraction took {time.time() - start:.2f}s -> '{extraction.incident_type}'")
    return extraction

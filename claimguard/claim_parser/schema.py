# claimguard/claim_parser/schema.py
"""
Defines the Pydantic data models for claim input and the structured extraction.
"""
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator

NOT_SPECIFIED = "Not specified"
UNKNOWN_INCIDENT = "Unknown Incident"

ACCEPTED_ATTACHMENT_TYPES = {"application/pdf", "image/jpeg", "image/png", "image/webp"}


class ClaimAttachment(BaseModel):
    """Evidence uploaded alongside the claim text (base64 encoded)."""
    mime_type: str = Field(..., description="Media type of the evidence, e.g. 'image/png'.")
    data: str = Field(..., description="Base64 encoded file content.")

    @field_validator("mime_type")
    @classmethod
    def _accepted_type(cls, value: str) -> str:
        if value not in ACCEPTED_ATTACHMENT_TYPES:
            raise ValueError("Unsupported file type. Please upload PDF or Images (JPEG, PNG, WEBP).")
        return value


class ClaimInput(BaseModel):
    text: str = ""
    file: Optional[ClaimAttachment] = None


class ClaimExtraction(BaseModel):
    """
    The canonical claim record handed to the eligibility verification stage.
    Sentinel values stand in for anything that could not be extracted.
    """
    incident_type: str = Field(
        UNKNOWN_INCIDENT,
        description="Type of incident (e.g., Car Accident, House Fire)"
    )
    incident_date: str = Field(NOT_SPECIFIED, description="Date of the incident")
    location: str = Field(NOT_SPECIFIED, description="Location where it happened")
    involved_parties: List[str] = Field(
        default_factory=list,
        description="Names of people involved"
    )
    damage_description: str = Field(
        "",
        description="Summary of the damage visible in evidence or described"
    )
    estimated_cost: Optional[str] = Field(NOT_SPECIFIED, description="Estimated cost if mentioned")
    key_topics: List[str] = Field(
        default_factory=list,
        description="Key topics extracted from the claim evidence that are specifically "
                    "relevant to the provided Knowledge Base context."
    )


class ProcessingStatus(str, Enum):
    IDLE = "IDLE"
    EXTRACTING = "EXTRACTING"
    VERIFYING = "VERIFYING"
    COMPLETED = "COMPLETED"
    ERROR = "ERROR"

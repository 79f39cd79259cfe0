from typing import Optional
from pydantic import BaseModel, Field


class VerificationResult(BaseModel):
    """
    The eligibility decision for one extracted claim.
    """
    is_eligible: bool = Field(..., description="Is the claim eligible under any of the provided policy documents?")
    policy_matched: Optional[str] = Field(None, description="The specific Policy Name and Section that covers this")
    reasoning: str = Field(..., description="Detailed explanation referencing specific terms from the Knowledge Base")
    suggested_policy: Optional[str] = Field(
        None,
        description="If ineligible, suggest which type of insurance from the Knowledge Base might apply, or 'None'"
    )
    confidence_score: float = Field(..., ge=0.0, le=1.0, description="Confidence score between 0 and 1")

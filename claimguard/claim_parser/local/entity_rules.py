# claimguard/claim_parser/local/entity_rules.py

"""
Keyword rule tables that route entity spans into extraction buckets
and vote for a claim domain.

Both tables match case-insensitive substrings of the entity type name.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .bio_decoder import EntitySpan

# (bucket, keywords) - a span lands in every bucket whose keywords match
BUCKET_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("parties", ("claimant", "name", "hospital", "garage", "airline")),
    ("dates", ("date",)),
    ("locations", ("location", "destination")),
    ("costs", ("amount", "cost", "value", "estimate")),
    ("policies", ("policy",)),
    ("types", ("type", "cause")),
)

# (domain label, keywords) - declaration order is the tie-break order
DOMAIN_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Medical / Health Claim", ("hospital", "disease", "treatment", "room")),
    ("Motor / Auto Claim", ("vehicle", "garage", "part", "repair")),
    ("Travel Insurance Claim", ("trip", "travel", "airline", "hotel")),
    ("Home / Property Claim", ("property", "loss", "assessment")),
)
DOMAIN_WEIGHT = 2


def _matches(entity_type: str, keywords: Tuple[str, ...]) -> bool:
    lowered = entity_type.lower()
    return any(keyword in lowered for keyword in keywords)


def matching_buckets(entity_type: str) -> List[str]:
    return [bucket for bucket, keywords in BUCKET_RULES if _matches(entity_type, keywords)]


def matching_domains(entity_type: str) -> List[str]:
    return [domain for domain, keywords in DOMAIN_RULES if _matches(entity_type, keywords)]


@dataclass
class ExtractionBuckets:
    parties: List[str] = field(default_factory=list)
    dates: List[str] = field(default_factory=list)
    locations: List[str] = field(default_factory=list)
    costs: List[str] = field(default_factory=list)
    policies: List[str] = field(default_factory=list)
    types: List[str] = field(default_factory=list)

    def route(self, span: EntitySpan) -> None:
        for bucket in matching_buckets(span.entity_type):
            getattr(self, bucket).append(span.text)


class DomainScoreTable:
    """Per-request domain votes; the strictly highest score wins, earliest domain on ties."""

    def __init__(self) -> None:
        self.scores: Dict[str, int] = {domain: 0 for domain, _ in DOMAIN_RULES}

    def add(self, entity_type: str) -> None:
        for domain in matching_domains(entity_type):
            self.scores[domain] += DOMAIN_WEIGHT

    def best(self) -> Optional[str]:
        """The leading domain, or None if nothing scored."""
        # TODO: report an explicit "ambiguous" label on ties once the verifier prompt can use it
        leader: Optional[str] = None
        max_score = 0
        for domain, score in self.scores.items():
            if score > max_score:
                max_score = score
                leader = domain
        return leader

    def predict(self, buckets: ExtractionBuckets, default: str) -> str:
        """Arg-max domain, else the first free-text type hint, else the default."""
        leader = self.best()
        if leader is not None:
            return leader
        if buckets.types:
            return buckets.types[0]
        return default

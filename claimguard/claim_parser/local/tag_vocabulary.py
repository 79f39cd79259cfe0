# claimguard/claim_parser/local/tag_vocabulary.py

"""
Index -> BIO tag lookup shared by every decode call.
"""
import logging
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence

OUTSIDE_TAG = "O"
BEGIN_PREFIX = "B-"
INSIDE_PREFIX = "I-"

# Entity labels of the reference claims tagger, used when no idx2tag asset is supplied
BASE_LABELS = [
    "Airline/Hotel Name", "Approved Amount", "Assessment Report Summary", "Claim Amount",
    "Claim Cause", "Claim Submission Date", "Disease", "Estimated Loss Value",
    "Garage Name", "Hospital Name", "Hospital Stay Duration", "Incident Description",
    "Part Damaged", "Policy Duration", "Policy Name", "Property Damage Type",
    "Reason for Claim", "Reimbursement Type", "Repair Estimate", "Room Type",
    "Settlement Date", "Travel Claim Type", "Treatment Type", "Trip Destination",
    "Vehicle Type",
]


class InvalidTagVocabulary(ValueError):
    pass


def entity_type_of(tag: str) -> Optional[str]:
    """Returns the entity type carried by a B-/I- tag, or None for O."""
    if tag.startswith(BEGIN_PREFIX) or tag.startswith(INSIDE_PREFIX):
        return tag[2:]
    return None


class TagVocabulary:
    """
    Immutable index -> tag table.

    Tags other than B-/I- (e.g. a PAD class exported with the model) and
    unknown indices resolve to O. A type may appear with only a B- tag.
    """

    def __init__(self, tags_by_index: Mapping[int, str]):
        tags: Dict[int, str] = {}
        entity_types = set()
        for index, tag in tags_by_index.items():
            entity_type = entity_type_of(tag)
            if entity_type is None:
                tags[index] = OUTSIDE_TAG
            else:
                tags[index] = tag
                entity_types.add(entity_type)

        self._tags = tags
        self._entity_types: FrozenSet[str] = frozenset(entity_types)

    @classmethod
    def from_labels(cls, labels: Sequence[str]) -> "TagVocabulary":
        """Builds the sorted O/B-/I- tag list for the given entity labels."""
        raw_tags: List[str] = [OUTSIDE_TAG]
        for label in labels:
            raw_tags.append(f"{BEGIN_PREFIX}{label}")
            raw_tags.append(f"{INSIDE_PREFIX}{label}")
        return cls(dict(enumerate(sorted(raw_tags))))

    @classmethod
    def default(cls) -> "TagVocabulary":
        return cls.from_labels(BASE_LABELS)

    @classmethod
    def from_idx2tag(cls, idx2tag: Mapping[str, str]) -> "TagVocabulary":
        """Builds the vocabulary from an asset's {"0": "O", ...} mapping, taken as given."""
        try:
            tags = {int(index): str(tag) for index, tag in idx2tag.items()}
        except (TypeError, ValueError) as e:
            raise InvalidTagVocabulary(f"idx2tag keys must be integer strings: {e}") from e
        return cls(tags)

    @property
    def entity_types(self) -> FrozenSet[str]:
        return self._entity_types

    def tag_for(self, index: int) -> str:
        return self._tags.get(int(index), OUTSIDE_TAG)

    def __len__(self) -> int:
        return len(self._tags)


DEFAULT_TAG_VOCABULARY = TagVocabulary.default()


def vocabulary_or_default(idx2tag: Optional[Mapping[str, str]]) -> TagVocabulary:
    """Returns the asset vocabulary, or the built-in one if the asset is absent or its keys are not indices."""
    if not idx2tag:
        return DEFAULT_TAG_VOCABULARY
    try:
        return TagVocabulary.from_idx2tag(idx2tag)
    except InvalidTagVocabulary as e:
        logging.warning(f"Ignoring malformed idx2tag asset, using built-in tags: {e}")
        return DEFAULT_TAG_VOCABULARY

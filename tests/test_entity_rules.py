from claimguard.claim_parser.local.bio_decoder import EntitySpan
from claimguard.claim_parser.local.entity_rules import (
    DomainScoreTable,
    ExtractionBuckets,
    matching_buckets,
    matching_domains,
)


def test_span_is_routed_to_every_matching_bucket():
    buckets = ExtractionBuckets()
    buckets.route(EntitySpan("Claim Submission Date", "12 May", 0))
    buckets.route(EntitySpan("Repair Estimate", "5000", 3))
    buckets.route(EntitySpan("Policy Name", "Gold Health", 5))

    assert buckets.dates == ["12 May"]
    assert buckets.costs == ["5000"]
    assert buckets.policies == ["Gold Health"]


def test_multi_bucket_entity_types():
    # "Garage Name" hits parties via both keywords, but is routed once
    assert matching_buckets("Garage Name") == ["parties"]
    assert matching_buckets("Travel Claim Type") == ["types"]
    assert matching_buckets("Trip Destination") == ["locations"]
    assert matching_buckets("Incident Description") == []


def test_domain_keywords_are_case_insensitive():
    assert matching_domains("HOSPITAL NAME") == ["Medical / Health Claim"]
    assert matching_domains("Vehicle Type") == ["Motor / Auto Claim"]
    assert matching_domains("Airline/Hotel Name") == ["Travel Insurance Claim"]
    assert matching_domains("Estimated Loss Value") == ["Home / Property Claim"]


def test_highest_score_wins():
    scores = DomainScoreTable()
    scores.add("Vehicle Type")
    scores.add("Disease")
    scores.add("Garage Name")

    assert scores.scores["Motor / Auto Claim"] == 4
    assert scores.best() == "Motor / Auto Claim"


def test_ties_go_to_the_earlier_domain():
    scores = DomainScoreTable()
    scores.add("Hospital Trip")
    assert scores.best() == "Medical / Health Claim"

    scores = DomainScoreTable()
    scores.add("Vehicle Trip")
    assert scores.best() == "Motor / Auto Claim"


def test_no_score_falls_back_to_type_hint_then_default():
    buckets = ExtractionBuckets(types=["Flood", "Storm"])

    assert DomainScoreTable().predict(buckets, "Unknown Incident") == "Flood"
    assert DomainScoreTable().predict(ExtractionBuckets(), "Unknown Incident") == "Unknown Incident"

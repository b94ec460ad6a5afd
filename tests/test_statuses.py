import pytest

from deindexer.workflows.errors import UnmappedStatusError
from deindexer.workflows.statuses import InspectionOutcome, Status, classify, emoji_for_status, empty_groups


def _payload(state):
    return {"inspectionResult": {"indexStatusResult": {"verdict": "PASS", "coverageState": state}}}


def test_classify_maps_every_remote_coverage_state():
    remote = [
        Status.SubmittedAndIndexed,
        Status.DuplicateWithoutUserSelectedCanonical,
        Status.CrawledCurrentlyNotIndexed,
        Status.DiscoveredCurrentlyNotIndexed,
        Status.PageWithRedirect,
        Status.URLIsUnknownToGoogle,
    ]
    for status in remote:
        outcome = InspectionOutcome(url="https://a.com/x", http_status=200, payload=_payload(status.value))
        assert classify(outcome) is status


def test_classify_transport_outcomes():
    assert classify(InspectionOutcome(url="u", http_status=429)) is Status.RateLimited
    assert classify(InspectionOutcome(url="u", http_status=403)) is Status.Forbidden
    assert classify(InspectionOutcome(url="u", http_status=500)) is Status.Error
    assert classify(InspectionOutcome(url="u", http_status=-1, error="timeout")) is Status.Error


def test_classify_rate_limit_wins_over_payload():
    outcome = InspectionOutcome(url="u", http_status=429, payload=_payload("Submitted and indexed"))
    assert classify(outcome) is Status.RateLimited


def test_classify_missing_coverage_state_is_error():
    assert classify(InspectionOutcome(url="u", http_status=200, payload={})) is Status.Error
    assert classify(InspectionOutcome(url="u", http_status=200, payload=None)) is Status.Error
    payload = {"inspectionResult": {"indexStatusResult": {"verdict": "NEUTRAL"}}}
    assert classify(InspectionOutcome(url="u", http_status=200, payload=payload)) is Status.Error


def test_classify_unknown_coverage_state_raises():
    outcome = InspectionOutcome(url="https://a.com/x", http_status=200, payload=_payload("Blocked by robots.txt"))
    with pytest.raises(UnmappedStatusError) as excinfo:
        classify(outcome)
    assert excinfo.value.coverage_state == "Blocked by robots.txt"
    assert excinfo.value.url == "https://a.com/x"


def test_synthetic_statuses_are_not_accepted_from_the_remote():
    outcome = InspectionOutcome(url="u", http_status=200, payload=_payload("RateLimited"))
    with pytest.raises(UnmappedStatusError):
        classify(outcome)


def test_empty_groups_has_every_status_in_order():
    groups = empty_groups()
    assert list(groups) == list(Status)
    assert all(members == [] for members in groups.values())


def test_emoji_for_status():
    assert emoji_for_status(Status.SubmittedAndIndexed) == "✅"
    assert emoji_for_status(Status.RateLimited) == "🚦"
    assert emoji_for_status(Status.Error) == "❌"

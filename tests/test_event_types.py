import pytest

from edgelink.event_types import VALID_EVENT_TYPES, is_valid_event_type


@pytest.mark.parametrize(
    "event_type", ["viewer-request", "origin-request", "viewer-response", "origin-response"]
)
def test_valid_event_types(event_type):
    assert is_valid_event_type(event_type)


@pytest.mark.parametrize(
    "event_type",
    [
        "Viewer-Request",
        "VIEWER-REQUEST",
        "viewer_request",
        "request",
        "",
        " viewer-request",
        None,
        1,
    ],
)
def test_invalid_event_types(event_type):
    assert not is_valid_event_type(event_type)


def test_exactly_four_event_types():
    assert len(VALID_EVENT_TYPES) == 4

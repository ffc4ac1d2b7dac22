from typing import Literal

type EventType = Literal["viewer-request", "origin-request", "viewer-response", "origin-response"]

VALID_EVENT_TYPES: tuple[str, ...] = (
    "viewer-request",
    "origin-request",
    "viewer-response",
    "origin-response",
)


def is_valid_event_type(value: object) -> bool:
    """Exact, case-sensitive membership check against the four trigger points."""
    return isinstance(value, str) and value in VALID_EVENT_TYPES

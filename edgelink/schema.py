from typing import Any

from edgelink.event_types import VALID_EVENT_TYPES

EDGE_SETTINGS_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "lambdaAtEdge": {
            "type": "object",
            "properties": {
                "retain": {"type": "boolean"},
                "defer": {"type": "boolean"},
                "pollInterval": {"type": "number", "exclusiveMinimum": 0},
            },
            "additionalProperties": False,
        },
    },
}

_PATH_PATTERN_SCHEMA = {"oneOf": [{"type": "string"}, {"type": "object"}]}

EDGE_ASSOCIATION_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "distribution": {"type": "string"},
        "distributionID": {"type": "string"},
        "eventType": {"enum": list(VALID_EVENT_TYPES)},
        "pathPattern": _PATH_PATTERN_SCHEMA,
        "includeBody": {"type": "boolean"},
        "injectEnv": {"type": "boolean"},
    },
    "required": ["eventType"],
    "anyOf": [{"required": ["distribution"]}, {"required": ["distributionID"]}],
    "additionalProperties": False,
}

FUNCTION_PROPERTIES_SCHEMA: dict[str, Any] = {
    "properties": {
        "lambdaAtEdge": {
            "oneOf": [
                {"type": "array", "items": EDGE_ASSOCIATION_SCHEMA},
                EDGE_ASSOCIATION_SCHEMA,
            ],
        },
    },
}


def configure_schema(handler: object) -> bool:
    """Register the configuration schema with the host, when it supports schemas.

    Returns False when the handler lacks the registration methods.
    """
    define_custom = getattr(handler, "define_custom_properties", None)
    define_function = getattr(handler, "define_function_properties", None)
    if not callable(define_custom) or not callable(define_function):
        return False

    define_custom(EDGE_SETTINGS_SCHEMA)
    define_function("aws", FUNCTION_PROPERTIES_SCHEMA)
    return True

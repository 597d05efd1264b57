"""JSON schemas for inbound request bodies and model outputs."""

from __future__ import annotations

CONTENT_REQUEST_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["prompt", "notifyAddress", "requesterId"],
    "properties": {
        "prompt": {"type": "string"},
        "notifyAddress": {"type": "string"},
        "requesterId": {"type": "string"},
        "enrichmentSource": {"type": ["string", "null"]},
        "triggerAutomation": {"type": ["boolean", "null"]},
    },
}

CLONE_REQUEST_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["requesterId", "cloneName", "samplePost"],
    "properties": {
        "requesterId": {"type": "string", "minLength": 1},
        "cloneName": {"type": "string", "minLength": 1, "maxLength": 120},
        "samplePost": {"type": "string", "minLength": 1},
    },
}

TONE_ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "required": ["tone", "personality"],
    "properties": {
        "tone": {"type": "string", "minLength": 1},
        "personality": {
            "type": "array",
            "minItems": 1,
            "maxItems": 8,
            "items": {"type": "string", "minLength": 1},
        },
    },
}

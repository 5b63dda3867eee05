# ABOUTME: Codec for range events, which travel as single-key objects such as {"introduced": "1.0.0"}
# ABOUTME: Maps the key name to an EventType tag and back, operating directly on JSON trees

from typing import Any, Dict

from models import Event, EventType

from .errors import DecodeError


def decode_event(tree: Any, path: str = "") -> Event:
    """Convert a single-entry JSON object into an Event"""
    if not isinstance(tree, dict):
        raise DecodeError(path, "event must be a JSON object", tree)

    if len(tree) != 1:
        raise DecodeError(
            path, f"event must have exactly one entry, got {len(tree)}", tree
        )

    key, value = next(iter(tree.items()))

    try:
        event_type = EventType[str(key).upper()]
    except KeyError:
        raise DecodeError(path, f"unknown event type: {key}", tree) from None

    if not isinstance(value, str):
        raise DecodeError(
            f"{path}.{key}" if path else str(key),
            f"event value must be a string, got {type(value).__name__}",
            value,
        )

    return Event(type=event_type, value=value)


def encode_event(event: Event) -> Dict[str, str]:
    """Convert an Event into its single-entry wire object"""
    return {event.type.name.lower(): event.value}

"""Helpers for DynamoDB Streams records delivered to Lambda."""

from typing import Any, Dict, Optional

from boto3.dynamodb.types import TypeDeserializer

_deserializer = TypeDeserializer()

# Which stream image carries the order for each event kind.
_IMAGE_FOR_EVENT = {
    "INSERT": "NewImage",
    "MODIFY": "NewImage",
    "REMOVE": "OldImage",
}


def extract_contact_id(record: Dict[str, Any]) -> Optional[str]:
    """
    Return the order's contactID for a stream record, or None.

    INSERT and MODIFY read the new image, REMOVE reads the old one. Unknown
    event kinds, missing images and non-string IDs all yield None.
    """
    image_key = _IMAGE_FOR_EVENT.get(record.get("eventName", ""))
    if image_key is None:
        return None

    image = (record.get("dynamodb") or {}).get(image_key) or {}
    raw = image.get("contactID")
    if not isinstance(raw, dict):
        return None

    try:
        value = _deserializer.deserialize(raw)
    except (TypeError, ValueError):
        return None

    if not isinstance(value, str) or not value.strip():
        return None
    return value

# /realty_intake/workflows/normalizer.py

from typing import Any, Dict, Optional

from realty_intake.models.domain import NormalizedInput


def _first(items: Any) -> Dict[str, Any]:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def extract_first_message(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Returns the first message unit of a WhatsApp delivery, or None if there is none."""
    if not isinstance(payload, dict):
        return None
    entry = _first(payload.get("entry"))
    change = _first(entry.get("changes"))
    value = change.get("value") or {}
    message = _first(value.get("messages") if isinstance(value, dict) else None)
    return message or None


def normalize_message(message: Dict[str, Any]) -> Optional[NormalizedInput]:
    """
    Turns one WhatsApp message unit into a NormalizedInput.

    Free text keeps its trimmed body. Button and list replies carry their id
    as `selection_id` and their title as `text`. Any other message type
    (image, audio, location...) yields empty text and no selection.
    """
    actor_id = message.get("from")
    if not actor_id:
        return None

    msg_type = message.get("type") or "unknown"
    text = ""
    selection_id = None

    if msg_type == "text":
        text = ((message.get("text") or {}).get("body") or "").strip()
    elif msg_type == "interactive":
        interactive = message.get("interactive") or {}
        button_reply = interactive.get("button_reply") or {}
        list_reply = interactive.get("list_reply") or {}
        selection_id = button_reply.get("id") or list_reply.get("id") or None
        text = button_reply.get("title") or list_reply.get("title") or ""

    return NormalizedInput(
        actor_id=str(actor_id),
        text=text,
        selection_id=selection_id,
        message_id=message.get("id"),
        message_type=msg_type,
    )


def normalize_delivery(payload: Dict[str, Any]) -> Optional[NormalizedInput]:
    """Normalizes a webhook delivery; None means there is nothing to process."""
    message = extract_first_message(payload)
    if message is None:
        return None
    return normalize_message(message)

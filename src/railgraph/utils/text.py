from __future__ import annotations

import json
import re
from typing import Any, Dict

_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Pull the first JSON object out of a model reply.

    Tolerates Markdown code fences and prose around the object.
    Raises ``ValueError`` when no object can be decoded.
    """
    cleaned = _FENCE.sub("", text or "").strip()
    start = cleaned.find("{")
    if start < 0:
        raise ValueError("no JSON object in reply")

    payload, _ = json.JSONDecoder().raw_decode(cleaned[start:])
    if not isinstance(payload, dict):
        raise ValueError("reply is not a JSON object")
    return payload


def truncate(text: str, limit: int = 200) -> str:
    text = " ".join(str(text).split())
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."

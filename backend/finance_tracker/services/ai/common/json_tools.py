"""JSON extraction from LLM responses."""

from __future__ import annotations

import json
import logging
import re

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(text: str) -> str:
    """Remove Markdown code-fence markers (```json and ```) from *text*."""
    return _FENCE_RE.sub("", text or "")


def extract_json_array(text: str) -> list | None:
    """Parse the span from the first ``[`` to the last ``]`` of *text*.

    Returns ``None`` when there is no such span, it does not parse, or it
    parses to something other than a list.
    """
    if not text or not text.strip():
        return None

    cleaned = strip_code_fences(text).strip()
    start = cleaned.find("[")
    end = cleaned.rfind("]") + 1
    if start == -1 or end <= start:
        return None

    try:
        parsed = json.loads(cleaned[start:end])
    except (json.JSONDecodeError, ValueError):
        logger.debug("Model response JSON slice did not parse: %s", cleaned[start:end][:200])
        return None

    if not isinstance(parsed, list):
        return None
    return parsed

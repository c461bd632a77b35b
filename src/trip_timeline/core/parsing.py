"""Recovery of the structured reply object from free-form model output."""

import json
import logging
from typing import Any, Dict, Optional


def find_json_object(text: str) -> Optional[str]:
    """
    Returns the first balanced ``{...}`` span in ``text``, or None.

    Walks the characters with a depth counter. Quotes and escapes are tracked
    so braces inside string values do not change the depth.
    """
    if not isinstance(text, str):
        return None
    start = text.find("{")
    if start == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return text[start:i + 1]
    return None


def parse_agent_response(content: str) -> Optional[Dict[str, Any]]:
    """Parses the reply object out of ``content``. None when nothing usable is found."""
    json_str = find_json_object(content.strip() if isinstance(content, str) else content)
    if json_str is None:
        logging.info("PARSE_DEBUG: No balanced JSON object found in assistant reply.")
        return None
    try:
        parsed = json.loads(json_str)
    except json.JSONDecodeError as e:
        logging.warning(f"Failed to parse assistant reply JSON: {e}")
        return None
    if not isinstance(parsed, dict):
        logging.warning(f"Assistant reply JSON is not an object: {type(parsed)}")
        return None
    return parsed

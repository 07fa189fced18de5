"""
LLM response parsers
"""
import json
import logging

logger = logging.getLogger(__name__)


def parse_json(response: str) -> dict:
    """Parse a JSON object from an LLM response (code fences tolerated)"""
    content = response.strip()

    # Remove ```json ... ```
    if content.startswith("```"):
        lines = content.split("```")
        if len(lines) >= 2:
            content = lines[1]
            if content.startswith("json"):
                content = content[4:]

    data = json.loads(content.strip())
    if not isinstance(data, dict):
        logger.warning(f"Expected a JSON object, got {type(data).__name__}")
        raise ValueError("LLM response is not a JSON object")

    return data

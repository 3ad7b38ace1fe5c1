import re

from errors import ContentPolicyError, ValidationError

FORBIDDEN_PATTERNS = [
    re.compile(r"<\s*/?\s*script\b", re.IGNORECASE),
    re.compile(r"javascript\s*:", re.IGNORECASE),
    re.compile(r"\bon(?:load|error|click|dblclick|focus|blur|submit|change|input|key\w+|mouse\w+)\s*=", re.IGNORECASE),
    re.compile(r"\{\{.*?\}\}", re.DOTALL),
    re.compile(r"\{%.*?%\}", re.DOTALL),
    re.compile(r"\$\{.*?\}", re.DOTALL),
    re.compile(r"\bselect\s+(?:\*|[\w.()*]+(?:\s*,\s*[\w.()*]+)*)\s+from\s+[\w.]+", re.IGNORECASE),
    re.compile(r"\bunion\s+(all\s+)?select\b", re.IGNORECASE),
    re.compile(r"\bdrop\s+table\b", re.IGNORECASE),
    re.compile(r"\binsert\s+into\b", re.IGNORECASE),
    re.compile(r"\bdelete\s+from\b", re.IGNORECASE),
]


def check_message(message, max_length: int) -> str:
    """Validate a chat message and return it unchanged.

    Length is checked before patterns, so an oversized message is always a
    400 whatever it contains.
    """
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message is required")
    if len(message) > max_length:
        raise ValidationError(f"Message is too long (max {max_length} characters)")
    for pattern in FORBIDDEN_PATTERNS:
        if pattern.search(message):
            raise ContentPolicyError("Message contains forbidden content")
    return message

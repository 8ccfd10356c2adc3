import re
import secrets
from typing import Optional

API_KEY_PREFIX = "sk-sm-v1-"
API_KEY_RANDOM_BYTES = 24
# Width of the api_keys.key_value column
API_KEY_MAX_LENGTH = 64

_BEARER_PATTERN = re.compile(r"^Bearer\s+", re.IGNORECASE)


def generate_api_key() -> str:
    """
    Generate a new API key.

    The key is the fixed prefix followed by 48 uppercase hex characters
    taken from 24 bytes of the secrets module's CSPRNG. The key is the sole
    bearer credential, so it must never come from a non-cryptographic source.
    """
    return API_KEY_PREFIX + secrets.token_hex(API_KEY_RANDOM_BYTES).upper()


def is_well_formed(candidate: Optional[str]) -> bool:
    """Prefix and length check run before any database lookup."""
    return (
        bool(candidate)
        and candidate.startswith(API_KEY_PREFIX)
        and len(candidate) <= API_KEY_MAX_LENGTH
    )


def extract_api_key(body_value: Optional[str], authorization: Optional[str]) -> str:
    """
    Pick the API key out of a request.

    Args:
        body_value: ``apiKey`` field from the JSON body
        authorization: raw ``Authorization`` header

    Returns:
        The trimmed key or an empty string when neither is set. A non-empty
        body value wins even when it is only whitespace.
    """
    if body_value:
        return body_value.strip()
    return _BEARER_PATTERN.sub("", authorization or "").strip()

import re
from typing import Any, Dict, Optional
from fastapi import Request
from apikey_service.core.api_key import API_KEY_PREFIX

MASK = "***MASKED***"

# Field names whose values are always hidden
SECRET_FIELD_TERMS = (
    "api_key", "apikey", "api-key", "key_value",
    "password", "secret", "token", "authorization", "cookie", "session",
)
EMAIL_FIELDS = {"email", "email_address"}
SENSITIVE_HEADERS = ("authorization", "x-api-key", "cookie", "set-cookie", "x-csrf-token")

_API_KEY_PATTERN = re.compile(re.escape(API_KEY_PREFIX) + r"[A-Za-z0-9]+")


def mask_email(value: str) -> str:
    """Keep the first three characters and the domain of an address."""
    local, sep, domain = value.partition("@")
    if not sep or len(local) <= 3:
        return MASK
    return f"{local[:3]}***@{domain}"


def mask_api_key(value: str) -> str:
    """Show only the prefix and the last four characters of a key."""
    if not value.startswith(API_KEY_PREFIX) or len(value) <= len(API_KEY_PREFIX) + 4:
        return MASK
    return f"{API_KEY_PREFIX}...{value[-4:]}"


def mask_sensitive_data(data: Any) -> Any:
    """
    Recursively mask sensitive data in dictionaries, lists, and strings.

    API keys embedded in free text are shortened to prefix + last four
    characters so log lines can still be correlated with a key.
    """
    if isinstance(data, dict):
        masked = {}
        for key, value in data.items():
            key_lower = str(key).lower()
            if key_lower in ("requestid", "request_id"):
                masked[key] = value
            elif any(term in key_lower for term in SECRET_FIELD_TERMS):
                masked[key] = mask_api_key(value) if isinstance(value, str) else MASK
            elif key_lower in EMAIL_FIELDS and isinstance(value, str):
                masked[key] = mask_email(value)
            else:
                masked[key] = mask_sensitive_data(value)
        return masked

    if isinstance(data, (list, tuple)):
        return [mask_sensitive_data(item) for item in data]

    if isinstance(data, str):
        return _API_KEY_PATTERN.sub(lambda m: mask_api_key(m.group(0)), data)

    return data


def mask_headers(headers: Dict[str, str]) -> Dict[str, str]:
    """Mask sensitive HTTP headers."""
    return {
        key: MASK if key.lower() in SENSITIVE_HEADERS else value
        for key, value in headers.items()
    }


def get_request_id(request: Optional[Request]) -> Optional[str]:
    """Extract request ID from request state."""
    if request and hasattr(request.state, "request_id"):
        return request.state.request_id
    return None


def sanitize_log_message(message: str, **kwargs: Any) -> str:
    """
    Build a log line of the form ``message | Key: value | ...`` with
    sensitive values masked.

    A ``RequestID`` keyword is appended last so RequestIDFormatter can lift
    it into the record prefix.
    """
    request_id = kwargs.pop("RequestID", None) or kwargs.pop("request_id", None)

    parts = [message]
    for key, value in mask_sensitive_data(kwargs).items():
        if isinstance(value, (dict, list)):
            value = str(value)[:200]
        parts.append(f"{key}: {value}")

    if request_id:
        parts.append(f"RequestID: {request_id}")

    return " | ".join(parts)

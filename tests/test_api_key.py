"""
Tests for API key generation, format checks and request extraction.
"""
import re
import pytest
from apikey_service.core.api_key import (
    API_KEY_PREFIX,
    extract_api_key,
    generate_api_key,
    is_well_formed,
)

KEY_PATTERN = re.compile(r"^sk-sm-v1-[0-9A-F]{48}$")


class TestApiKeyGeneration:
    """Tests for generate_api_key."""

    def test_generated_key_matches_format(self):
        """Generated key should be the prefix plus 48 uppercase hex characters."""
        key = generate_api_key()

        assert KEY_PATTERN.match(key)
        assert len(key) == len(API_KEY_PREFIX) + 48

    def test_generated_keys_are_unique(self):
        """Repeated generation should not repeat a key."""
        keys = {generate_api_key() for _ in range(1000)}

        assert len(keys) == 1000

    def test_generated_key_is_well_formed(self):
        """Every generated key should pass the format check."""
        assert is_well_formed(generate_api_key()) is True


class TestIsWellFormed:
    """Tests for the prefix check."""

    @pytest.mark.parametrize("candidate", [
        "sk-sm-v1-ABC",
        "sk-sm-v1-" + "0" * 48,
    ])
    def test_prefixed_values_pass(self, candidate):
        """Anything with the prefix passes; existence is checked later."""
        assert is_well_formed(candidate) is True

    @pytest.mark.parametrize("candidate", [
        None,
        "",
        "abc",
        "sk-sm-v2-" + "A" * 48,
        "SK-SM-V1-" + "A" * 48,
        "sk-sm-v1-" + "A" * 56,
    ])
    def test_other_values_fail(self, candidate):
        """Missing or differently prefixed values fail."""
        assert is_well_formed(candidate) is False


class TestExtractApiKey:
    """Tests for picking the key out of body and Authorization header."""

    def test_body_only(self):
        assert extract_api_key("sk-sm-v1-BODY", None) == "sk-sm-v1-BODY"

    def test_bearer_only(self):
        assert extract_api_key(None, "Bearer sk-sm-v1-HEADER") == "sk-sm-v1-HEADER"

    def test_body_wins_over_header(self):
        """When both are present the body value is used."""
        assert extract_api_key("sk-sm-v1-BODY", "Bearer sk-sm-v1-HEADER") == "sk-sm-v1-BODY"

    def test_empty_body_falls_back_to_header(self):
        assert extract_api_key("", "Bearer sk-sm-v1-HEADER") == "sk-sm-v1-HEADER"

    def test_whitespace_body_still_wins(self):
        """A body value that is present shadows the header even when blank."""
        assert extract_api_key("   ", "Bearer sk-sm-v1-HEADER") == ""

    def test_bearer_scheme_is_case_insensitive(self):
        assert extract_api_key(None, "bearer   sk-sm-v1-HEADER ") == "sk-sm-v1-HEADER"

    def test_values_are_trimmed(self):
        assert extract_api_key("  sk-sm-v1-BODY  ", None) == "sk-sm-v1-BODY"

    def test_nothing_supplied(self):
        """Neither source yields an empty string."""
        assert extract_api_key(None, None) == ""
        assert extract_api_key("", "Bearer ") == ""

    def test_header_without_scheme_is_used_as_is(self):
        assert extract_api_key(None, "sk-sm-v1-RAW") == "sk-sm-v1-RAW"

"""Unit tests for API key secret generation and hashing."""

from iam.application.security import (
    API_KEY_PREFIX,
    display_suffix,
    generate_api_key_secret,
    hash_api_key_secret,
    is_valid_api_key_format,
)


class TestGenerateAPIKeySecret:
    def test_has_prefix_and_64_hex_chars(self):
        secret = generate_api_key_secret()

        assert secret.startswith(API_KEY_PREFIX)
        assert len(secret) == len(API_KEY_PREFIX) + 64
        assert is_valid_api_key_format(secret)

    def test_secrets_are_unique(self):
        secrets = {generate_api_key_secret() for _ in range(100)}

        assert len(secrets) == 100


class TestHashAPIKeySecret:
    def test_hash_is_stable(self):
        secret = generate_api_key_secret()

        assert hash_api_key_secret(secret) == hash_api_key_secret(secret)

    def test_hash_is_sha256_hex(self):
        # sha256("abc")
        assert hash_api_key_secret("abc") == (
            "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"
        )

    def test_hash_does_not_contain_secret(self):
        secret = generate_api_key_secret()

        assert secret not in hash_api_key_secret(secret)


class TestIsValidAPIKeyFormat:
    def test_rejects_wrong_prefix(self):
        assert not is_valid_api_key_format("ns_test_" + "a" * 64)

    def test_rejects_uppercase_hex(self):
        assert not is_valid_api_key_format(API_KEY_PREFIX + "A" * 64)

    def test_rejects_wrong_length(self):
        assert not is_valid_api_key_format(API_KEY_PREFIX + "a" * 63)
        assert not is_valid_api_key_format(API_KEY_PREFIX + "a" * 65)

    def test_rejects_trailing_newline(self):
        assert not is_valid_api_key_format(API_KEY_PREFIX + "a" * 64 + "\n")


def test_display_suffix_is_last_eight_chars():
    assert display_suffix("0" * 56 + "deadbeef") == "deadbeef"

# SPDX-License-Identifier: MIT
"""
Tests for entropy analysis.
"""
import math

import pytest

from keysentinel.detectors.entropy import (
    EntropyConfig,
    calculate_entropy,
    detect_high_entropy_strings,
    is_base64_like,
    is_likely_non_secret,
)

from samples import BASE64_LIKE, GITHUB_PAT, LOW_ENTROPY_TOKEN


class TestCalculateEntropy:
    """Test the Shannon entropy function."""

    def test_empty_string(self):
        """Empty input has zero entropy."""
        assert calculate_entropy("") == 0

    def test_single_symbol(self):
        """A repeated character has zero entropy."""
        assert calculate_entropy("aaaaaaaa") == 0

    def test_uniform_distribution(self):
        """k equally frequent symbols give log2(k) bits."""
        assert calculate_entropy("abcd") == pytest.approx(2.0)
        assert calculate_entropy("0123456789abcdef") == pytest.approx(4.0)
        assert calculate_entropy("ab" * 50) == pytest.approx(1.0)

    def test_permutation_invariant(self):
        """Order of characters does not matter."""
        assert calculate_entropy("aabbcdef") == pytest.approx(calculate_entropy("fedcbaab"))

    def test_known_value(self):
        """20 unique plus 10 doubled characters over 40."""
        expected = 0.5 * math.log2(40) + 0.5 * math.log2(20)
        assert calculate_entropy(BASE64_LIKE) == pytest.approx(expected)


class TestHeuristics:
    """Test the non-secret and base64 filters."""

    @pytest.mark.parametrize(
        "value",
        [
            "12345678901234567890",
            "123e4567-e89b-12d3-a456-426614174000",
            "some_long_identifier_name",
            "some-long-kebab-identifier",
            "v1.2.3-beta",
            "https://example.com/some/path",
            "someone@example.com",
            "da39a3ee5e6b4b0d3255bfef95601890afd80709",
            "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855",
            "null",
        ],
    )
    def test_likely_non_secret(self, value):
        """Structurally boring values are filtered."""
        assert is_likely_non_secret(value)

    def test_random_token_not_filtered(self):
        """A random token is a candidate."""
        assert not is_likely_non_secret(GITHUB_PAT)
        assert not is_likely_non_secret(LOW_ENTROPY_TOKEN)

    def test_base64_like(self):
        """Base64 alphabet with length divisible by four."""
        assert is_base64_like("QUJDREVGR0hJSktMTU5PUA==")
        assert is_base64_like(BASE64_LIKE)
        assert not is_base64_like("abcde")
        assert not is_base64_like(LOW_ENTROPY_TOKEN)


class TestDetectHighEntropyStrings:
    """Test candidate extraction and thresholds."""

    def test_finds_token_with_score(self):
        """Tokens above the threshold are returned with their entropy."""
        matches = detect_high_entropy_strings(f"token: {GITHUB_PAT}", EntropyConfig())

        assert [m.value for m in matches] == [GITHUB_PAT]
        assert matches[0].entropy == pytest.approx(calculate_entropy(GITHUB_PAT))

    def test_disabled(self):
        """Disabled config finds nothing."""
        assert detect_high_entropy_strings(GITHUB_PAT, EntropyConfig(enabled=False)) == []

    def test_min_length(self):
        """Tokens shorter than min_length are skipped."""
        assert detect_high_entropy_strings(GITHUB_PAT, EntropyConfig(min_length=50)) == []

    def test_threshold(self):
        """Scores below the threshold are dropped."""
        assert detect_high_entropy_strings(LOW_ENTROPY_TOKEN, EntropyConfig()) != []
        assert detect_high_entropy_strings(LOW_ENTROPY_TOKEN, EntropyConfig(threshold=4.5)) == []

    def test_base64_toggle(self):
        """Base64 shaped tokens are only kept when not ignored."""
        assert detect_high_entropy_strings(BASE64_LIKE, EntropyConfig()) == []
        assert len(detect_high_entropy_strings(BASE64_LIKE, EntropyConfig(ignore_base64_like=False))) == 1

    def test_short_words_ignored(self):
        """Ordinary prose has no candidates."""
        assert detect_high_entropy_strings("the quick brown fox jumps over", EntropyConfig()) == []

# SPDX-License-Identifier: MIT
"""
Tests for secret masking.
"""
import pytest

from keysentinel.core.redaction import mask_line, mask_multiple, mask_secret, redact

from samples import AWS_KEY, GITHUB_PAT


class TestMaskSecret:
    """Test masking of a single value."""

    def test_shows_three_chars_each_end(self):
        """Middle of a 20 character key becomes 14 stars."""
        assert mask_secret(AWS_KEY) == "AKI" + "*" * 14 + "PLE"

    def test_middle_capped_at_twenty(self):
        """Very long secrets do not produce unwieldy output."""
        masked = mask_secret("x" * 200)

        assert masked == "xxx" + "*" * 20 + "xxx"

    @pytest.mark.parametrize("value", ["a", "short", "123456789"])
    def test_short_values_fully_masked(self, value):
        """Values of length 2*3+3 or less are only stars."""
        assert mask_secret(value) == "*" * len(value)

    def test_full_mask_capped_at_ten(self):
        """With a large show_chars the full mask is capped."""
        assert mask_secret("abcdefghijklmno", show_chars=6) == "*" * 10

    def test_empty(self):
        """Empty input still yields a mask."""
        assert mask_secret("") == "***"

    @pytest.mark.parametrize("value", [AWS_KEY, GITHUB_PAT, "abcdefghij", "correct-horse-battery-staple"])
    def test_never_reveals_more_than_show_chars(self, value):
        """No run longer than show_chars from either end survives."""
        masked = mask_secret(value)

        assert value[:4] not in masked
        assert value[-4:] not in masked
        assert value not in masked


class TestMaskLine:
    """Test masking a secret inside a line."""

    def test_short_line(self):
        """The secret is replaced in place."""
        assert mask_line(f'key = "{AWS_KEY}"', AWS_KEY) == 'key = "AKI' + "*" * 14 + 'PLE"'

    def test_every_occurrence(self):
        """A repeated secret is masked each time it appears."""
        masked = mask_line(f"{AWS_KEY} {AWS_KEY}", AWS_KEY)

        assert masked == f"{mask_secret(AWS_KEY)} {mask_secret(AWS_KEY)}"

    def test_also_mask(self):
        """Other secrets on the line are masked too."""
        masked = mask_line(f"{AWS_KEY}:{GITHUB_PAT}", AWS_KEY, also_mask=[GITHUB_PAT])

        assert masked == f"{mask_secret(AWS_KEY)}:{mask_secret(GITHUB_PAT)}"

    def test_long_line_window_with_other_secret(self):
        """The window is still centred on the secret when others are masked first."""
        line = f"{GITHUB_PAT} " + "a" * 200 + f" {AWS_KEY} " + "b" * 200
        masked = mask_line(line, AWS_KEY, also_mask=[GITHUB_PAT])

        assert mask_secret(AWS_KEY) in masked
        assert masked.startswith("...")
        assert GITHUB_PAT not in masked

    def test_long_line_window(self):
        """Long lines keep 20 characters either side of the mask."""
        line = "a" * 200 + f' token="{GITHUB_PAT}" ' + "b" * 200
        masked = mask_line(line, GITHUB_PAT)
        token = mask_secret(GITHUB_PAT)

        assert masked.startswith("...")
        assert masked.endswith("...")
        assert token in masked
        assert GITHUB_PAT not in masked
        assert len(masked) == 3 + 20 + len(token) + 20 + 3

    def test_window_at_line_start(self):
        """No leading ellipsis when the secret is near the start."""
        line = f"{GITHUB_PAT} " + "b" * 200
        masked = mask_line(line, GITHUB_PAT)

        assert masked.startswith("ghp*")
        assert masked.endswith("...")

    def test_secret_not_found(self):
        """A line without the secret is truncated to the limit."""
        masked = mask_line("y" * 150, "zzzzzzzzzz")

        assert masked == "y" * 97 + "..."
        assert len(masked) == 100

    def test_empty_inputs(self):
        """Empty line or secret returns the line unchanged."""
        assert mask_line("", AWS_KEY) == ""
        assert mask_line("plain line", "") == "plain line"


class TestMaskMultipleAndRedact:
    """Test bulk masking and redaction."""

    def test_mask_multiple(self):
        """Every occurrence of every secret is masked."""
        text = f"a={AWS_KEY} b={GITHUB_PAT} c={AWS_KEY}"
        masked = mask_multiple(text, [AWS_KEY, GITHUB_PAT, ""])

        assert AWS_KEY not in masked
        assert GITHUB_PAT not in masked
        assert masked.count(mask_secret(AWS_KEY)) == 2

    def test_contained_secret(self):
        """A secret inside a longer one does not expose the longer one."""
        longer = "prefix" + AWS_KEY + "suffix"
        masked = mask_multiple(f"k={longer}", [AWS_KEY, longer])

        assert masked == f"k={mask_secret(longer)}"

    def test_redact(self):
        """Redaction keeps only the length."""
        assert redact(AWS_KEY) == "[REDACTED:20 chars]"
        assert redact("") == "[REDACTED]"

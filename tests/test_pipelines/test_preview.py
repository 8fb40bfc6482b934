"""
Tests for Prompt Preview

Tests for sceneprompt/utils/text_utils.py
"""

import pytest

from sceneprompt.core.constants import PREVIEW_MAX_LENGTH
from sceneprompt.utils.text_utils import (
    generate_prompt_preview,
    normalize_whitespace,
    strip_wrapping_quotes,
    truncate_at_word,
)

LONG_PROMPT = (
    "A young woman walks slowly through a sunlit city park, vertical composition, "
    "subject centered, full-body framing, clean composition, soft lighting, "
    "professional photography, minimal, elegant, high quality, sharp focus"
)


class TestGeneratePromptPreview:
    """Tests for generate_prompt_preview()."""

    def test_short_prompt_unchanged(self):
        assert generate_prompt_preview("a red boat") == "a red boat"

    def test_whitespace_collapsed(self):
        assert generate_prompt_preview("  a red\n\tboat  ") == "a red boat"

    def test_long_prompt_bounded(self):
        preview = generate_prompt_preview(LONG_PROMPT)

        assert len(preview) <= PREVIEW_MAX_LENGTH
        assert preview.endswith("…")
        assert LONG_PROMPT.startswith(preview[:-1])
        assert "\n" not in preview

    def test_cut_at_word_boundary(self):
        preview = generate_prompt_preview(LONG_PROMPT)

        # the word before the ellipsis is complete
        last_word = preview[:-1].split(" ")[-1]
        assert last_word in LONG_PROMPT.replace(",", " ").split(" ")

    def test_trailing_punctuation_dropped(self):
        prompt = "aaaa, " * 30

        preview = generate_prompt_preview(prompt)

        assert preview.endswith("aaaa…")

    def test_single_long_word(self):
        preview = generate_prompt_preview("x" * 200)

        assert preview == "x" * (PREVIEW_MAX_LENGTH - 1) + "…"

    @pytest.mark.parametrize("prompt", [
        LONG_PROMPT,
        "a red boat",
        "x" * 200,
        "word " * 40,
        "",
        "a" * PREVIEW_MAX_LENGTH,
        "a" * (PREVIEW_MAX_LENGTH + 1),
    ])
    def test_idempotent(self, prompt):
        once = generate_prompt_preview(prompt)

        assert generate_prompt_preview(once) == once
        assert len(once) <= PREVIEW_MAX_LENGTH

    def test_custom_bound(self):
        assert len(generate_prompt_preview(LONG_PROMPT, max_length=20)) <= 20

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            generate_prompt_preview("abc", max_length=1)


class TestTextHelpers:
    """Tests for the smaller text helpers."""

    def test_normalize_whitespace(self):
        assert normalize_whitespace(" a \n b ") == "a b"
        assert normalize_whitespace(None) == ""

    def test_strip_wrapping_quotes(self):
        assert strip_wrapping_quotes('"quoted"') == "quoted"
        assert strip_wrapping_quotes("“curly”") == "curly"
        assert strip_wrapping_quotes('say "hi"') == 'say "hi"'

    def test_truncate_at_word(self):
        assert truncate_at_word("one two three", 7) == "one two"
        assert truncate_at_word("one two three", 8) == "one two"
        assert truncate_at_word("abcdef", 3) == "abc"

"""
Tests for Safety Validator

Tests for sceneprompt/safety/validator.py
"""

import pytest

from sceneprompt.core.config import SafetyConfig
from sceneprompt.core.constants import AdultContentMode, ContentPolicy
from sceneprompt.safety.validator import SafetyEvaluation, SafetyValidator, evaluate, mask_spans

PERMISSIVE = SafetyConfig(violence_filter=False, adult_content=AdultContentMode.ALLOW)


class TestEvaluate:
    """Tests for evaluate()."""

    def test_safe_prompt(self):
        result = evaluate("a girl walks in a park, soft lighting", SafetyConfig())

        assert result.is_safe
        assert result.violations == ()
        assert result.filtered_prompt is None

    def test_blocked_word_case_insensitive(self):
        config = SafetyConfig(blocked_words=("Dragon",), violence_filter=False)

        result = evaluate("A DRAGON over the hills", config)

        assert result.violations == ("blocked_word:dragon",)
        assert result.filtered_prompt == "A ****** over the hills"

    def test_blocked_word_with_multichar_lowercase(self):
        # "İ".lower() is two code points
        config = SafetyConfig(blocked_words=("İzmir",), violence_filter=False)

        result = evaluate("a ferry arriving in İzmir at dusk", config)

        assert result.violations == ("blocked_word:" + "İzmir".casefold(),)
        assert result.filtered_prompt == "a ferry arriving in ***** at dusk"

    def test_blocked_word_non_ascii_case_insensitive(self):
        config = SafetyConfig(blocked_words=("Café",), violence_filter=False)

        result = evaluate("a CAFÉ at noon", config)

        assert result.violations == ("blocked_word:café",)
        assert result.filtered_prompt == "a **** at noon"

    def test_blocked_word_substring_match(self):
        config = SafetyConfig(blocked_words=("cat",), violence_filter=False)

        result = evaluate("a concatenated caption", config)

        assert result.violations == ("blocked_word:cat",)
        assert "cat" not in result.filtered_prompt.lower()

    def test_each_term_recorded_once(self):
        config = SafetyConfig(blocked_words=("rain",), violence_filter=False)

        result = evaluate("rain, more rain, RAIN", config)

        assert result.violations == ("blocked_word:rain",)
        assert result.filtered_prompt == "****, more ****, ****"

    def test_strict_lexicon_only_under_strict_policy(self):
        prompt = "a disney castle at night"

        standard = evaluate(prompt, PERMISSIVE)
        strict = evaluate(prompt, SafetyConfig(
            content_policy=ContentPolicy.STRICT,
            violence_filter=False,
            adult_content=AdultContentMode.ALLOW,
        ))

        assert standard.is_safe
        assert strict.violations == ("strict_policy:disney",)

    def test_violence_filter(self):
        prompt = "a knight with a knife"

        assert evaluate(prompt, SafetyConfig()).violations == ("violence:knife",)
        assert evaluate(prompt, PERMISSIVE).is_safe

    def test_adult_content_modes(self):
        prompt = "a nude statue in a museum"

        blocked = evaluate(prompt, SafetyConfig(adult_content=AdultContentMode.BLOCK))
        warned = evaluate(prompt, SafetyConfig(adult_content=AdultContentMode.WARN))
        allowed = evaluate(prompt, SafetyConfig(adult_content=AdultContentMode.ALLOW))

        assert blocked.violations == ("adult_content:nude",)
        assert warned.is_safe
        assert allowed.is_safe

    def test_adult_warn_logs(self, caplog):
        with caplog.at_level("WARNING", logger="sceneprompt"):
            evaluate("a nude statue", SafetyConfig(adult_content=AdultContentMode.WARN))

        assert "nude" in caplog.text

    def test_scan_order(self):
        config = SafetyConfig(
            content_policy=ContentPolicy.STRICT,
            blocked_words=("moon",),
        )

        result = evaluate("nude horror gun under the moon", config)

        assert result.violations == (
            "blocked_word:moon",
            "strict_policy:horror",
            "violence:gun",
            "adult_content:nude",
        )

    def test_same_term_in_two_categories(self):
        config = SafetyConfig(blocked_words=("violence",))

        result = evaluate("prompt with violence", config)

        assert result.violations == ("blocked_word:violence", "violence:violence")
        assert result.filtered_prompt == "prompt with ********"

    def test_overlapping_terms_merge(self):
        config = SafetyConfig(blocked_words=("sunset", "setback"), violence_filter=False)

        result = evaluate("a sunsetback road", config)

        assert result.filtered_prompt == "a ********** road"

    def test_masking_preserves_length(self):
        prompt = "Blood on the KNIFE, a gun nearby"

        result = evaluate(prompt, SafetyConfig())

        assert len(result.filtered_prompt) == len(prompt)
        for term in ("blood", "knife", "gun"):
            assert term not in result.filtered_prompt.lower()

    def test_filtered_prompt_present_iff_violations(self):
        for prompt in ("calm lake", "a gun", ""):
            result = evaluate(prompt, SafetyConfig())
            assert (result.filtered_prompt is not None) == bool(result.violations)

    def test_empty_prompt(self):
        assert evaluate("", SafetyConfig()).is_safe

    @pytest.mark.parametrize("prompt,blocked", [
        ("A Dragon and a KNIFE", ("dragon",)),
        ("nothing to see here", ()),
        ("Ghosts, ghosts everywhere", ("ghost", "host")),
    ])
    def test_idempotent(self, prompt, blocked):
        config = SafetyConfig(blocked_words=blocked, content_policy=ContentPolicy.STRICT)

        assert evaluate(prompt, config) == evaluate(prompt, config)

    def test_masked_prompt_is_clean(self):
        config = SafetyConfig(blocked_words=("dragon",))

        first = evaluate("a dragon with a knife", config)
        second = evaluate(first.filtered_prompt, config)

        assert second.is_safe


class TestMaskSpans:
    """Tests for mask_spans()."""

    def test_adjacent_and_nested_spans(self):
        assert mask_spans("abcdef", [(0, 2), (2, 4), (1, 3)]) == "****ef"

    def test_no_spans(self):
        assert mask_spans("abc", []) == "abc"


class TestSafetyValidator:
    """Tests for the SafetyValidator wrapper."""

    def test_bound_policy(self):
        validator = SafetyValidator(SafetyConfig(blocked_words=("fog",)))

        assert validator.evaluate("morning fog").violations == ("blocked_word:fog",)
        assert validator.evaluate("clear sky").is_safe

    def test_evaluation_to_dict(self):
        evaluation = SafetyEvaluation(violations=("violence:gun",), filtered_prompt="a ***")

        assert evaluation.to_dict() == {"violations": ["violence:gun"], "filtered_prompt": "a ***"}

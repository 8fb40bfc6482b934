"""
Tests for Template Application

Tests for sceneprompt/pipelines/templates.py
"""

import pytest

from sceneprompt.core.config import SafetyConfig
from sceneprompt.core.constants import AspectRatio, ContentPolicy, TemplateName
from sceneprompt.core.exceptions import InvalidConfigError
from sceneprompt.pipelines.templates import (
    FRAMING_DIRECTIVES,
    STYLE_RECIPES,
    TemplateApplier,
    apply_template,
)
from sceneprompt.safety.validator import evaluate

BASE = "a girl walks in a park"


class TestApplyTemplate:
    """Tests for apply_template()."""

    @pytest.mark.parametrize("template", list(TemplateName))
    @pytest.mark.parametrize("ratio", list(AspectRatio))
    def test_deterministic(self, template, ratio):
        assert apply_template(BASE, template, ratio) == apply_template(BASE, template, ratio)

    @pytest.mark.parametrize("ratio", list(AspectRatio))
    def test_base_prompt_kept_as_prefix(self, ratio):
        styled = apply_template(BASE, TemplateName.VIVID, ratio)

        assert styled.startswith(BASE + ", ")
        assert FRAMING_DIRECTIVES[ratio] in styled

    def test_recipe_contents(self):
        styled = apply_template(BASE, "dark", "16:9")

        assert styled == (
            "a girl walks in a park, wide cinematic composition, horizontal framing, "
            "dark aesthetic, glass morphism, moody atmosphere, cinematic, dramatic lighting, "
            "modern, sleek, artistic, professional, tasteful"
        )

    def test_safe_words_appended_only_when_absent(self):
        classic = apply_template(BASE, TemplateName.CLASSIC, AspectRatio.SQUARE)
        dark = apply_template("An Artistic portrait", TemplateName.DARK, AspectRatio.SQUARE)

        # classic directive already says "professional" and "clean"
        assert classic.lower().count("professional") == 1
        assert classic.endswith(", appropriate")
        assert dark.lower().count("artistic") == 1

    def test_string_and_enum_inputs_match(self):
        assert apply_template(BASE, "vivid", "9:16") == apply_template(
            BASE, TemplateName.VIVID, AspectRatio.PORTRAIT
        )

    def test_unknown_template_falls_back_to_classic(self):
        assert apply_template(BASE, "noir", "1:1") == apply_template(BASE, "classic", "1:1")

    def test_invalid_aspect_ratio(self):
        with pytest.raises(InvalidConfigError):
            apply_template(BASE, "classic", "4:3")

    def test_trailing_punctuation_trimmed(self):
        styled = apply_template("a quiet harbor.", "classic", "9:16")

        assert styled.startswith("a quiet harbor, vertical composition")

    def test_empty_base_prompt(self):
        styled = apply_template("", "classic", "9:16")

        assert styled.startswith(FRAMING_DIRECTIVES[AspectRatio.PORTRAIT])


class TestStyleRecipes:
    """Tests for the recipe table."""

    def test_every_template_has_a_recipe(self):
        assert set(STYLE_RECIPES) == set(TemplateName)

    def test_every_ratio_has_framing(self):
        assert set(FRAMING_DIRECTIVES) == set(AspectRatio)

    @pytest.mark.parametrize("template", list(TemplateName))
    @pytest.mark.parametrize("ratio", list(AspectRatio))
    def test_template_vocabulary_passes_strict_policy(self, template, ratio):
        strict = SafetyConfig(content_policy=ContentPolicy.STRICT)

        assert evaluate(apply_template("", template, ratio), strict).is_safe


class TestTemplateApplier:
    """Tests for the TemplateApplier wrapper."""

    def test_matches_function(self):
        applier = TemplateApplier("vivid", "16:9")

        assert applier.apply(BASE) == apply_template(BASE, TemplateName.VIVID, AspectRatio.LANDSCAPE)

    def test_unknown_name_resolved_once(self):
        applier = TemplateApplier("unknown", "1:1")

        assert applier.template_name == TemplateName.CLASSIC

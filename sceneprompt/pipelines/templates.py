"""
Style template application.

Single source of truth for template styling. A template recipe appends a
base directive, style modifiers and safe words to a base prompt; the aspect
ratio contributes a framing directive only and never touches subject
content. Application is a pure function of its inputs.

Usage:
    from sceneprompt.pipelines.templates import apply_template

    styled = apply_template("a girl walks in a park", "vivid", "9:16")
"""

from dataclasses import dataclass
from typing import Dict, List, Tuple, Union

from sceneprompt.core.config import parse_template_name
from sceneprompt.core.constants import AspectRatio, TemplateName
from sceneprompt.core.exceptions import ConfigurationError, InvalidConfigError
from sceneprompt.core.logging_config import get_logger
from sceneprompt.safety.lexicons import ADULT_TERMS, STRICT_TERMS, VIOLENCE_TERMS

logger = get_logger("pipelines.templates")


@dataclass(frozen=True)
class StyleRecipe:
    """Fixed augmentation for one template."""
    base_directive: str
    style_modifiers: Tuple[str, ...]
    safe_words: Tuple[str, ...]

    def vocabulary(self) -> Tuple[str, ...]:
        return (self.base_directive,) + self.style_modifiers + self.safe_words


# =============================================================================
# STYLE RECIPES (Canonical Definitions)
# =============================================================================

STYLE_RECIPES: Dict[TemplateName, StyleRecipe] = {
    TemplateName.CLASSIC: StyleRecipe(
        base_directive="clean composition, soft lighting, professional photography",
        style_modifiers=("minimal", "elegant", "high quality", "sharp focus"),
        safe_words=("professional", "clean", "appropriate"),
    ),
    TemplateName.DARK: StyleRecipe(
        base_directive="dark aesthetic, glass morphism, moody atmosphere",
        style_modifiers=("cinematic", "dramatic lighting", "modern", "sleek"),
        safe_words=("artistic", "professional", "tasteful"),
    ),
    TemplateName.VIVID: StyleRecipe(
        base_directive="vibrant colors, gradient backgrounds, energetic mood",
        style_modifiers=("colorful", "dynamic", "bright", "cheerful"),
        safe_words=("positive", "uplifting", "family-friendly"),
    ),
}

FRAMING_DIRECTIVES: Dict[AspectRatio, str] = {
    AspectRatio.PORTRAIT: "vertical composition, subject centered, full-body framing",
    AspectRatio.LANDSCAPE: "wide cinematic composition, horizontal framing",
    AspectRatio.SQUARE: "square composition, centered subject",
}


def _check_recipes() -> None:
    """Every template and aspect ratio must be covered, and no template
    vocabulary may trip the built-in safety lexicons."""
    missing = [name.value for name in TemplateName if name not in STYLE_RECIPES]
    if missing:
        raise ConfigurationError(f"Missing style recipe for template(s): {', '.join(missing)}")

    missing = [ratio.value for ratio in AspectRatio if ratio not in FRAMING_DIRECTIVES]
    if missing:
        raise ConfigurationError(f"Missing framing directive for aspect ratio(s): {', '.join(missing)}")

    lexicon = STRICT_TERMS + VIOLENCE_TERMS + ADULT_TERMS
    for name, recipe in STYLE_RECIPES.items():
        text = " ".join(recipe.vocabulary() + tuple(FRAMING_DIRECTIVES.values())).lower()
        clashes = [term for term in lexicon if term in text]
        if clashes:
            raise ConfigurationError(
                f"Template '{name.value}' vocabulary matches safety terms: {', '.join(clashes)}"
            )


_check_recipes()


def _resolve_aspect_ratio(aspect_ratio: Union[AspectRatio, str]) -> AspectRatio:
    if isinstance(aspect_ratio, AspectRatio):
        return aspect_ratio
    try:
        return AspectRatio(aspect_ratio)
    except ValueError:
        raise InvalidConfigError(
            f"Invalid aspect ratio: {aspect_ratio!r}",
            field_name="aspect_ratio",
            value=aspect_ratio,
        )


def apply_template(
    base_prompt: str,
    template_name: Union[TemplateName, str],
    aspect_ratio: Union[AspectRatio, str]
) -> str:
    """
    Apply a style template to a base prompt.

    Args:
        base_prompt: Synthesized prompt
        template_name: Template enum or name (unknown names fall back to classic)
        aspect_ratio: Target frame shape

    Returns:
        Styled prompt, comma-joined
    """
    recipe = STYLE_RECIPES[parse_template_name(template_name)]
    ratio = _resolve_aspect_ratio(aspect_ratio)

    parts: List[str] = []
    base = (base_prompt or "").strip().rstrip(",.;")
    if base:
        parts.append(base)
    parts.append(FRAMING_DIRECTIVES[ratio])
    parts.append(recipe.base_directive)
    parts.extend(recipe.style_modifiers)

    for word in recipe.safe_words:
        if word.lower() not in ", ".join(parts).lower():
            parts.append(word)

    return ", ".join(parts)


class TemplateApplier:
    """Template application bound to a template and aspect ratio."""

    def __init__(self, template_name: Union[TemplateName, str], aspect_ratio: Union[AspectRatio, str]):
        self.template_name = parse_template_name(template_name)
        self.aspect_ratio = _resolve_aspect_ratio(aspect_ratio)

    def apply(self, base_prompt: str) -> str:
        return apply_template(base_prompt, self.template_name, self.aspect_ratio)

"""
Tests for Prompt Loader

Tests for sceneprompt/core/prompt_loader.py
"""

import pytest

from sceneprompt.core.exceptions import ConfigurationError
from sceneprompt.core.prompt_loader import PromptLoader, parse_prompt_file


class TestPromptLoader:
    """Tests for PromptLoader."""

    @pytest.mark.parametrize("name", ["visual_extraction", "prompt_synthesis", "safe_alternatives"])
    def test_packaged_prompts_load(self, name):
        prompt = PromptLoader.load(name)

        assert prompt
        assert "```" not in prompt
        assert "## " not in prompt

    def test_render_replaces_placeholders(self):
        rendered = PromptLoader.load_and_render(
            "visual_extraction",
            scene_text="a girl walks in a park",
            language="en",
        )

        assert 'Scene: "a girl walks in a park"' in rendered
        assert "{scene_text}" not in rendered
        assert "{language}" not in rendered

    def test_render_keeps_unrelated_braces(self):
        assert PromptLoader.render('{"a": 1} {x}', x="y") == '{"a": 1} y'

    def test_custom_base_path(self, temp_dir):
        (temp_dir / "custom.md").write_text(
            "# Custom\n\n## Prompt\n```\nHello {name}\n```\n",
            encoding="utf-8",
        )
        PromptLoader.set_base_path(temp_dir)

        assert PromptLoader.load_and_render("custom", name="world") == "Hello world"

    def test_plain_prompt_section(self, temp_dir):
        (temp_dir / "plain.md").write_text(
            "# Plain\n\n## Prompt\nJust text\n\n## Notes\nignored\n",
            encoding="utf-8",
        )
        PromptLoader.set_base_path(temp_dir)

        assert PromptLoader.load("plain") == "Just text"

    def test_missing_prompt(self, temp_dir):
        PromptLoader.set_base_path(temp_dir)

        with pytest.raises(FileNotFoundError):
            PromptLoader.load("does_not_exist")

    def test_declared_variables(self):
        template = PromptLoader.load_template("visual_extraction")

        assert template.variables == ("scene_text", "language")

    def test_missing_declared_variable(self):
        with pytest.raises(ConfigurationError) as exc_info:
            PromptLoader.load_and_render("visual_extraction", scene_text="a park")

        assert exc_info.value.details["missing"] == ["language"]

    def test_user_text_is_not_rescanned(self):
        rendered = PromptLoader.render("{a} / {b}", a="{b}", b="x")

        assert rendered == "{b} / x"


class TestParsePromptFile:
    """Tests for parse_prompt_file()."""

    def test_no_prompt_section(self):
        template = parse_prompt_file("bare", "just a prompt\n")

        assert template.text == "just a prompt"
        assert template.variables == ()

    def test_variables_listed_once(self):
        content = (
            "# X\n\n## Variables\n- `{a}`, `{b}`: things\n- `{a}`: again\n\n"
            "## Prompt\n```\n{a} {b}\n```\n"
        )

        template = parse_prompt_file("x", content)

        assert template.variables == ("a", "b")
        assert template.render(a=1, b=2) == "1 2"

"""
ScenePrompt Prompt Loader

Model prompts live in markdown files under ``sceneprompt/prompts`` so they
can be edited without touching the stages that send them.

Prompt File Format:
    # {Stage} - {Purpose}

    ## Description
    Free text, ignored by the loader.

    ## Variables
    - `{scene_text}`: every placeholder the prompt expects

    ## Prompt
    ```
    Prompt text with {scene_text} placeholders
    ```

The ``## Variables`` list is the contract: ``load_and_render`` refuses to
send a prompt with a declared placeholder left unfilled.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from sceneprompt.core.exceptions import ConfigurationError
from sceneprompt.core.logging_config import get_logger

logger = get_logger("core.prompt_loader")

_PLACEHOLDER = re.compile(r'\{([A-Za-z_][A-Za-z0-9_]*)\}')
_FENCED_PROMPT = re.compile(r'^## Prompt\s*\n+```[^\n]*\n(.*?)```', re.DOTALL | re.IGNORECASE | re.MULTILINE)
_PLAIN_PROMPT = re.compile(r'^## Prompt\s*\n+(.*?)(?=\n## |\Z)', re.DOTALL | re.IGNORECASE | re.MULTILINE)
_VARIABLES_SECTION = re.compile(r'^## Variables\s*\n(.*?)(?=\n## |\Z)', re.DOTALL | re.IGNORECASE | re.MULTILINE)


@dataclass(frozen=True)
class PromptTemplate:
    """A parsed prompt file."""
    name: str
    text: str
    variables: Tuple[str, ...] = ()

    def render(self, **values: Any) -> str:
        missing = [name for name in self.variables if name not in values]
        if missing:
            raise ConfigurationError(
                f"Prompt '{self.name}' is missing variables: {', '.join(missing)}",
                {"prompt": self.name, "missing": missing},
            )
        return PromptLoader.render(self.text, **values)


def parse_prompt_file(name: str, content: str) -> PromptTemplate:
    """Split a prompt markdown file into its prompt text and declared variables."""
    match = _FENCED_PROMPT.search(content) or _PLAIN_PROMPT.search(content)
    if match:
        text = match.group(1).strip()
    else:
        logger.warning(f"Prompt '{name}' has no ## Prompt section, using entire content")
        text = content.strip()

    variables: Tuple[str, ...] = ()
    section = _VARIABLES_SECTION.search(content)
    if section:
        # dict.fromkeys keeps first-seen order
        variables = tuple(dict.fromkeys(_PLACEHOLDER.findall(section.group(1))))

    return PromptTemplate(name=name, text=text, variables=variables)


class PromptLoader:
    """
    Loads and caches prompt files.

    Usage:
        prompt = PromptLoader.load_and_render("visual_extraction", scene_text="...", language="en")
    """

    _cache: Dict[str, PromptTemplate] = {}
    _base_path: Optional[Path] = None

    @classmethod
    def set_base_path(cls, path: Optional[Path]) -> None:
        """Point the loader at another prompts directory (None restores the default)."""
        cls._base_path = Path(path) if path else None
        cls._cache.clear()

    @classmethod
    def _get_base_path(cls) -> Path:
        if cls._base_path:
            return cls._base_path
        return Path(__file__).parent.parent / "prompts"

    @classmethod
    def load_template(cls, prompt_name: str) -> PromptTemplate:
        """
        Load a prompt file by name (without the .md extension).

        Raises:
            FileNotFoundError: If the prompt file doesn't exist
        """
        if prompt_name in cls._cache:
            return cls._cache[prompt_name]

        prompt_path = cls._get_base_path() / f"{prompt_name}.md"
        if not prompt_path.exists():
            raise FileNotFoundError(f"Prompt not found: {prompt_path}")

        template = parse_prompt_file(prompt_name, prompt_path.read_text(encoding='utf-8'))
        cls._cache[prompt_name] = template
        logger.debug(f"Loaded prompt: {prompt_name} (variables: {', '.join(template.variables) or 'none'})")
        return template

    @classmethod
    def load(cls, prompt_name: str) -> str:
        return cls.load_template(prompt_name).text

    @staticmethod
    def render(prompt: str, **variables: Any) -> str:
        """
        Substitute ``{name}`` placeholders in one pass.

        Unknown placeholders and other braces (JSON examples) are left as is,
        and substituted values are never rescanned, so user text containing
        ``{...}`` cannot pull in another variable.
        """
        def substitute(match):
            key = match.group(1)
            return str(variables[key]) if key in variables else match.group(0)

        return _PLACEHOLDER.sub(substitute, prompt)

    @classmethod
    def load_and_render(cls, prompt_name: str, **variables: Any) -> str:
        """
        Load a prompt and fill it in.

        Raises:
            ConfigurationError: A variable declared by the prompt file was not supplied
        """
        return cls.load_template(prompt_name).render(**variables)

    @classmethod
    def clear_cache(cls) -> None:
        cls._cache.clear()
        logger.debug("Prompt cache cleared")

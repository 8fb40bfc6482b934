"""
ScenePrompt Main Entry Point

Run a scene batch against Gemini and print the results as JSON.

    python -m sceneprompt scenes.json --config project.json --template dark
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List

from sceneprompt.core.config import load_config, merge_config
from sceneprompt.core.constants import PROJECT_NAME, VERSION
from sceneprompt.core.env_loader import ensure_env_loaded
from sceneprompt.core.exceptions import ScenePromptError
from sceneprompt.core.logging_config import LogLevel, get_logger, setup_logging
from sceneprompt.core.metrics import get_metrics
from sceneprompt.llm.client import GeminiClient
from sceneprompt.pipelines.models import SceneInput
from sceneprompt.pipelines.orchestrator import ScenePromptPipeline


def load_scenes(path: Path) -> List[SceneInput]:
    """Read scenes from a JSON list; a missing ``index`` defaults to the list position."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ScenePromptError(f"{path} must contain a JSON list of scenes")
    scenes = []
    for position, item in enumerate(data):
        if not isinstance(item, dict) or 'id' not in item:
            raise ScenePromptError(f"scene at position {position} must be an object with an 'id'")
        scenes.append(SceneInput.from_dict({'index': position, **item}))
    return scenes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sceneprompt",
        description="ScenePrompt - narrative scenes to safe visual prompts"
    )

    parser.add_argument(
        "scenes",
        type=str,
        help="Path to a JSON list of {id, index, text} scenes"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        help="Path to a project configuration JSON file"
    )

    parser.add_argument(
        "--template", "-t",
        type=str,
        help="Template override (classic, dark, vivid)"
    )

    parser.add_argument(
        "--aspect-ratio", "-a",
        type=str,
        choices=["9:16", "16:9", "1:1"],
        help="Aspect ratio override"
    )

    parser.add_argument(
        "--strategy", "-s",
        type=str,
        choices=["skip", "mask", "fail"],
        help="Safety error strategy override"
    )

    parser.add_argument(
        "--preview",
        action="store_true",
        help="Add a one-line preview of each prompt to the output"
    )

    parser.add_argument(
        "--alternatives",
        action="store_true",
        help="Ask the model for safe rewrites of scenes with violations"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--log-file",
        type=str,
        help="Also write logs to this file"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"{PROJECT_NAME} {VERSION}"
    )

    return parser


async def run(args) -> int:
    logger = get_logger("main")

    config = load_config(Path(args.config) if args.config else None)
    overrides = {}
    if args.template:
        overrides["template"] = args.template
    if args.aspect_ratio:
        overrides["aspect_ratio"] = args.aspect_ratio
    if args.strategy:
        overrides["safety"] = {"error_strategy": args.strategy}
    config = merge_config(config, overrides or None)

    scenes = load_scenes(Path(args.scenes))
    logger.info(f"Loaded {len(scenes)} scenes from {args.scenes}")

    async with GeminiClient() as client:
        pipeline = ScenePromptPipeline(client, suggest_alternatives=args.alternatives)
        results = await pipeline.generate_scene_prompts(scenes, config)

    output = []
    for result in results:
        entry = result.to_dict()
        if args.preview:
            entry["preview"] = pipeline.generate_prompt_preview(result.visual_prompt)
        output.append(entry)

    print(json.dumps({"results": output, "metrics": get_metrics().snapshot()}, ensure_ascii=False, indent=2))
    return 0 if all(r.success for r in results) else 2


def main():
    """Main entry point for the ScenePrompt CLI."""
    args = build_parser().parse_args()

    setup_logging(
        level=LogLevel.DEBUG if args.debug else LogLevel.INFO,
        log_file=Path(args.log_file) if args.log_file else None,
        verbose=args.debug,
    )
    ensure_env_loaded()
    logger = get_logger("main")

    try:
        sys.exit(asyncio.run(run(args)))
    except ScenePromptError as e:
        logger.error(str(e))
        sys.exit(1)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Could not read input: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()

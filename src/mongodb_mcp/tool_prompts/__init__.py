"""Centralized prompt and instruction management for MongoDB MCP tools.

Tool descriptions and server instructions are stored in JSON files beside
this module and loaded on demand, so wording can change without touching the
server registration code.

Usage:
    from . import get_tool_prompt, get_system_instructions
    prompt = get_tool_prompt("getSchema")
    instructions = get_system_instructions()
"""

import json
import logging
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Directory containing prompt files
PROMPTS_DIR = Path(__file__).parent
SYSTEM_INSTRUCTIONS_FILE = "system_instructions.json"


class ToolPrompt:
    """Structured representation of a tool prompt."""

    def __init__(self, name: str, description: str, usage: str, examples: list[str]):
        self.name = name
        self.description = description
        self.usage = usage
        self.examples = examples

    def to_docstring(self) -> str:
        """Convert the prompt to a properly formatted docstring."""
        text = self.description
        if self.usage:
            text += f"\n\n{self.usage}"
        if self.examples:
            examples_text = "\n".join(f"- {example}" for example in self.examples)
            text += f"\n\nExamples:\n{examples_text}"
        return text

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "ToolPrompt":
        """Create a ToolPrompt from dictionary data."""
        return cls(
            name=name,
            description=data["description"],
            usage=data.get("usage", ""),
            examples=data.get("examples", []),
        )


# Cache for loaded prompts
_prompts_cache: dict[str, ToolPrompt] = {}
# Cache for system instructions
_system_instructions_cache: dict[str, Any] | None = None


def get_tool_prompt(tool_name: str) -> str | None:
    """Get the formatted prompt/docstring for a tool.

    Args:
        tool_name: Name of the tool (e.g., "getSchema")

    Returns:
        Formatted docstring for the tool, or None if not found
    """
    if tool_name in _prompts_cache:
        return _prompts_cache[tool_name].to_docstring()

    prompt_file = PROMPTS_DIR / f"{tool_name}.json"
    if not prompt_file.exists():
        logger.warning(f"Prompt file not found: {prompt_file}")
        return None

    try:
        with open(prompt_file, encoding="utf-8") as f:
            data = json.load(f)
        prompt = ToolPrompt.from_dict(tool_name, data)
    except (OSError, json.JSONDecodeError, KeyError) as e:
        logger.error(f"Error loading prompt for {tool_name}: {e}")
        return None

    _prompts_cache[tool_name] = prompt
    return prompt.to_docstring()


def list_available_prompts() -> list[str]:
    """List all tool names that have a prompt file."""
    return sorted(
        f.stem
        for f in PROMPTS_DIR.glob("*.json")
        if f.is_file() and f.name != SYSTEM_INSTRUCTIONS_FILE
    )


def get_system_instructions() -> str | None:
    """Get the system instructions for the MCP server.

    Returns:
        System instructions string, or None if not found
    """
    global _system_instructions_cache

    if _system_instructions_cache is not None:
        return _system_instructions_cache.get("server_instructions")

    instructions_file = PROMPTS_DIR / SYSTEM_INSTRUCTIONS_FILE
    if not instructions_file.exists():
        logger.warning(f"System instructions file not found: {instructions_file}")
        return None

    try:
        with open(instructions_file, encoding="utf-8") as f:
            _system_instructions_cache = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Error loading system instructions: {e}")
        return None

    return _system_instructions_cache.get("server_instructions")

"""Prompt management module.

Externalizes prompts to text files for easy customization.
Prompts can be overridden by placing files in the working directory.
"""

from functools import lru_cache
from pathlib import Path

_PROMPTS_DIR = Path(__file__).parent

# First line of the context message that carries scratch thoughts
THOUGHTS_HEADER = "Reasoning so far:"


@lru_cache(maxsize=16)
def load_prompt(name: str) -> str:
    """Load a prompt from file.

    Search order:
    1. Current working directory: ./prompts/{name}.txt
    2. Package prompts directory: llmagent/prompts/{name}.txt

    Args:
        name: Prompt name (without .txt extension)

    Returns:
        Prompt text content

    Raises:
        FileNotFoundError: If prompt file not found in any location
    """
    filename = f"{name}.txt"

    local_path = Path.cwd() / "prompts" / filename
    if local_path.exists():
        return local_path.read_text(encoding="utf-8")

    package_path = _PROMPTS_DIR / filename
    if package_path.exists():
        return package_path.read_text(encoding="utf-8")

    raise FileNotFoundError(
        f"Prompt '{name}' not found. Searched:\n"
        f"  - {local_path}\n"
        f"  - {package_path}"
    )


def get_system_prompt(tools_description: str = "None") -> str:
    """Get the default agent system prompt with the tool list filled in."""
    return load_prompt("system").format(tools_description=tools_description)


def format_thoughts(thoughts: list[str]) -> str:
    """Render scratch thoughts as a context message for the provider."""
    lines = [THOUGHTS_HEADER]
    lines.extend(f"{i}. {thought}" for i, thought in enumerate(thoughts, 1))
    lines.append(load_prompt("next_action").strip())
    return "\n".join(lines)


def clear_cache() -> None:
    """Clear the prompt cache (useful after modifying prompt files)."""
    load_prompt.cache_clear()


__all__ = [
    "THOUGHTS_HEADER",
    "clear_cache",
    "format_thoughts",
    "get_system_prompt",
    "load_prompt",
]

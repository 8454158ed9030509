"""Persona builder: turn a message sample into a roleplay system prompt."""

from __future__ import annotations

import logging
from pathlib import Path

from .config import Config
from .llm import generate

_LOGGER = logging.getLogger(__name__)

PERSONA_PROMPT_PATH = Path(__file__).parent / "prompts" / "persona.md"


def analysis_prompt(persona: str, sample: str) -> str:
    """Fill the persona analysis prompt for *persona* with *sample*."""
    return _load_persona_prompt().format(persona=persona, samples=sample)


def build_persona(persona: str, sample: str, config: Config | None = None) -> str:
    """Ask the LLM for a system prompt that makes it write like *persona*.

    Args:
        persona: Sender name as it appears in the chat.
        sample: Output of :func:`persona_mirror.sample.select_sample`.
        config: Runtime config. Uses defaults if None.

    Returns:
        The generated system prompt text.

    Raises:
        ValueError: If *sample* is empty; there is nothing to analyze.
    """
    if config is None:
        config = Config()

    if not sample.strip():
        raise ValueError(f"No usable messages from {persona!r} to analyze.")

    _LOGGER.info("Building persona for %s from %d sample line(s)", persona, len(sample.splitlines()))
    result = generate(analysis_prompt(persona, sample), config=config)
    return result.strip()


def save_persona(persona: str, system_prompt: str, config: Config | None = None) -> Path:
    """Write a generated system prompt to the personas directory."""
    if config is None:
        config = Config()
    config.ensure_data_dir()
    path = config.persona_path(persona)
    path.write_text(system_prompt.rstrip() + "\n")
    return path


def load_persona(persona: str, config: Config | None = None) -> str | None:
    """Return the saved system prompt for *persona*, or None if there isn't one."""
    if config is None:
        config = Config()
    path = config.persona_path(persona)
    if not path.exists():
        return None
    return path.read_text().strip()


def _load_persona_prompt() -> str:
    """Load the persona analysis prompt template."""
    if PERSONA_PROMPT_PATH.exists():
        return PERSONA_PROMPT_PATH.read_text()
    # Fallback minimal prompt
    return (
        'Write a 2-3 paragraph system prompt, starting with "You are {persona}...", '
        "that makes an LLM write exactly like the author of these messages:\n\n{samples}"
    )

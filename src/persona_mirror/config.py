"""Paths, defaults, and environment detection."""

from __future__ import annotations

import hashlib
import os
import re
from dataclasses import dataclass, field
from pathlib import Path


def _xdg_data_home() -> Path:
    return Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def _xdg_config_home() -> Path:
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


ENV_FILE_TEMPLATE = """\
# Persona Mirror: API Keys
# This file is read by the persona command on startup.
# It is NOT committed to any repo. Keep it private.
#
# Uncomment and set exactly one (Anthropic is preferred when both exist):

# ANTHROPIC_API_KEY=sk-ant-...
# OPENAI_API_KEY=sk-...

# Force a provider instead of auto-detecting: anthropic, openai
# PM_LLM_PROVIDER=anthropic

# How many recent messages feed the persona analysis
# PM_SAMPLE_SIZE=400
"""


@dataclass
class Config:
    """Runtime configuration, resolved from env vars and defaults."""

    # Generated personas live here
    data_dir: Path = field(default_factory=lambda: _xdg_data_home() / "persona-mirror")

    # Env file for API keys
    env_file: Path = field(default_factory=lambda: _xdg_config_home() / "persona-mirror" / "env")

    # LLM settings
    llm_provider: str | None = field(
        default_factory=lambda: os.environ.get("PM_LLM_PROVIDER") or None
    )  # "anthropic" | "openai" | None (auto-detect)
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_model: str = "gpt-4o-mini"
    temperature: float = 0.8
    max_output_tokens: int = 1000
    request_timeout: float = 30.0

    # Sampling
    sample_size: int = field(default_factory=lambda: _env_int("PM_SAMPLE_SIZE", 400))

    # Chat: how many recent turns are sent with each message
    chat_context_turns: int = 10

    @property
    def personas_dir(self) -> Path:
        return self.data_dir / "personas"

    def persona_path(self, sender: str) -> Path:
        """File holding the generated system prompt for *sender*.

        Sender names are case-sensitive and may collapse to the same slug, so
        the file name carries a short hash of the exact name.
        """
        slug = re.sub(r"[^\w-]+", "-", sender.strip()).strip("-") or "persona"
        digest = hashlib.sha1(sender.encode("utf-8")).hexdigest()[:8]
        return self.personas_dir / f"{slug}-{digest}.md"

    def ensure_data_dir(self) -> None:
        self.personas_dir.mkdir(parents=True, exist_ok=True)

    def load_env_file(self) -> None:
        """Load API keys from the env file into os.environ (if not already set)."""
        if not self.env_file.exists():
            return
        for line in self.env_file.read_text().splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            # Don't overwrite keys already in the environment
            if key and key not in os.environ:
                os.environ[key] = value

    def ensure_env_file(self) -> bool:
        """Create the env file from template if it doesn't exist. Returns True if created."""
        if self.env_file.exists():
            return False
        self.env_file.parent.mkdir(parents=True, exist_ok=True)
        self.env_file.write_text(ENV_FILE_TEMPLATE)
        self.env_file.chmod(0o600)
        return True

    def detect_provider(self) -> str:
        """Auto-detect which LLM API to use based on available keys."""
        if self.llm_provider:
            return self.llm_provider
        if os.environ.get("ANTHROPIC_API_KEY"):
            return "anthropic"
        if os.environ.get("OPENAI_API_KEY"):
            return "openai"
        raise RuntimeError(
            "No LLM API key found. Add your key to "
            f"{self.env_file} or set ANTHROPIC_API_KEY / OPENAI_API_KEY."
        )

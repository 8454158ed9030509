"""Chat with a generated persona."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field

from .config import Config
from .llm import generate

_LOGGER = logging.getLogger(__name__)


@dataclass
class ChatTurn:
    role: str  # "user" or "assistant"
    content: str
    timestamp: float | None = None


@dataclass
class ChatSession:
    """Rolling conversation against a persona system prompt.

    Only the last ``config.chat_context_turns`` turns are sent with each
    message, which keeps the context short and the persona in focus.
    """

    persona: str
    system_prompt: str
    config: Config = field(default_factory=Config)
    history: list[ChatTurn] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.history:
            self.reset()

    @property
    def greeting(self) -> str:
        return f"(Connected as {self.persona}) Hey, what's up?"

    def reset(self) -> None:
        self.history = [ChatTurn(role="assistant", content=self.greeting)]

    def send(self, text: str) -> str:
        """Send *text* as the user and return the persona's reply.

        If the LLM call fails the user turn is dropped again, so a retry
        doesn't send it twice.
        """
        if not text.strip():
            raise ValueError("Cannot send an empty message.")

        self.history.append(ChatTurn(role="user", content=text, timestamp=time.time()))
        context = self.history[-max(self.config.chat_context_turns, 1):]
        # The current message goes in as the prompt, not as history
        prior = [(turn.role, turn.content) for turn in context[:-1]]

        try:
            reply = generate(text, system_prompt=self.system_prompt, history=prior, config=self.config)
        except Exception:
            self.history.pop()
            raise

        _LOGGER.debug("Persona %s replied (%d chars)", self.persona, len(reply))
        self.history.append(ChatTurn(role="assistant", content=reply, timestamp=time.time()))
        return reply

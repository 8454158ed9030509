"""Thin LLM API abstraction over Anthropic and OpenAI.

Everything that talks to a model goes through :func:`generate`, so the parser
and sampler never touch the network and tests only need to patch one name.
"""

from __future__ import annotations

import logging

from .config import Config

_LOGGER = logging.getLogger(__name__)

# (role, content) pairs; role is "user" or "assistant"
History = list[tuple[str, str]]


def generate(
    prompt: str,
    system_prompt: str | None = None,
    history: History | None = None,
    config: Config | None = None,
) -> str:
    """Send *prompt* (after optional *history*) to the configured LLM and return the reply text."""
    if config is None:
        config = Config()

    provider = config.detect_provider()
    messages = [{"role": role, "content": content} for role, content in history or []]
    messages.append({"role": "user", "content": prompt})
    _LOGGER.debug("Calling %s with %d message(s)", provider, len(messages))

    if provider == "anthropic":
        return _call_anthropic(system_prompt, messages, config)
    elif provider == "openai":
        return _call_openai(system_prompt, messages, config)
    else:
        raise ValueError(f"Unknown provider: {provider}")


def _call_anthropic(system_prompt: str | None, messages: list[dict], config: Config) -> str:
    import anthropic

    client = anthropic.Anthropic(timeout=config.request_timeout)
    kwargs = {}
    if system_prompt:
        kwargs["system"] = system_prompt
    message = client.messages.create(
        model=config.anthropic_model,
        max_tokens=config.max_output_tokens,
        temperature=config.temperature,
        messages=_merge_consecutive(messages),
        **kwargs,
    )
    return "".join(block.text for block in message.content if block.type == "text")


def _call_openai(system_prompt: str | None, messages: list[dict], config: Config) -> str:
    import openai

    client = openai.OpenAI(timeout=config.request_timeout)
    if system_prompt:
        messages = [{"role": "system", "content": system_prompt}, *messages]
    response = client.chat.completions.create(
        model=config.openai_model,
        max_tokens=config.max_output_tokens,
        temperature=config.temperature,
        messages=messages,
    )
    return response.choices[0].message.content or ""


def _merge_consecutive(messages: list[dict]) -> list[dict]:
    """Anthropic wants alternating roles starting with the user; fold runs together."""
    merged: list[dict] = []
    for msg in messages:
        if merged and merged[-1]["role"] == msg["role"]:
            merged[-1] = {"role": msg["role"], "content": merged[-1]["content"] + "\n\n" + msg["content"]}
        else:
            merged.append(dict(msg))
    # A greeting from the persona can open the history
    if merged and merged[0]["role"] != "user":
        merged.insert(0, {"role": "user", "content": "(conversation start)"})
    return merged

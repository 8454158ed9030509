"""CLI entry points: persona participants, sample, analyze, chat, init, status."""

from __future__ import annotations

import logging
import os
from pathlib import Path

import click

from .config import Config
from .transcripts import ParsedMessage

NO_MESSAGES_ERROR = "No valid messages found. Check if the text file is a valid WhatsApp export."


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Persona Mirror: chat with an AI that writes like someone from your chat export."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    ctx.ensure_object(dict)
    Config().load_env_file()  # Seed os.environ before constructing final config
    config = Config()
    ctx.obj["config"] = config


def _load_messages(chat_file: Path) -> list[ParsedMessage]:
    from .transcripts.whatsapp import parse_chat_file

    messages = parse_chat_file(chat_file)
    if not messages:
        raise click.ClickException(NO_MESSAGES_ERROR)
    return messages


def _require_sender(messages: list[ParsedMessage], sender: str) -> None:
    from .transcripts import participants

    senders = participants(messages)
    if sender not in senders:
        raise click.ClickException(
            f"{sender!r} does not appear in this chat. Participants: {', '.join(senders)}"
        )


@cli.command(name="participants")
@click.argument("chat_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_participants(chat_file: Path, as_json: bool) -> None:
    """List the senders found in CHAT_FILE."""
    from collections import Counter

    from .transcripts import participants

    messages = _load_messages(chat_file)
    counts = Counter(m.sender for m in messages)
    senders = participants(messages)

    if as_json:
        import json as json_mod
        output = [{"sender": s, "messages": counts[s]} for s in senders]
        click.echo(json_mod.dumps(output, indent=2, ensure_ascii=False))
        return

    click.echo(f"{len(messages)} message(s) from {len(senders)} participant(s):")
    for s in senders:
        click.echo(f"  {s} ({counts[s]})")


@cli.command()
@click.argument("chat_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sender", "-s", required=True, help="Whose messages to sample (exact name)")
@click.option("--max-count", "-n", type=int, default=None, help="Max messages to include (default: config sample size)")
@click.pass_context
def sample(ctx: click.Context, chat_file: Path, sender: str, max_count: int | None) -> None:
    """Print the most recent usable messages SENDER wrote in CHAT_FILE."""
    from .sample import select_sample

    config = ctx.obj["config"]
    messages = _load_messages(chat_file)
    _require_sender(messages, sender)

    text = select_sample(messages, sender, max_count if max_count is not None else config.sample_size)
    if text:
        click.echo(text)


@cli.command()
@click.argument("chat_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sender", "-s", required=True, help="Who the persona should imitate (exact name)")
@click.option("--max-count", "-n", type=int, default=None, help="Max messages to analyze (default: config sample size)")
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), help="Write the persona here instead of the data dir")
@click.option("--dry-run", is_flag=True, help="Print the analysis prompt without calling the LLM")
@click.pass_context
def analyze(
    ctx: click.Context,
    chat_file: Path,
    sender: str,
    max_count: int | None,
    output: Path | None,
    dry_run: bool,
) -> None:
    """Build a persona system prompt for SENDER from CHAT_FILE."""
    from .persona import analysis_prompt, build_persona, save_persona
    from .sample import sender_contents, select_sample

    config = ctx.obj["config"]
    messages = _load_messages(chat_file)
    _require_sender(messages, sender)

    limit = max_count if max_count is not None else config.sample_size
    text = select_sample(messages, sender, limit)
    if not text:
        raise click.ClickException(f"No usable messages from {sender!r} to analyze.")

    usable = len(sender_contents(messages, sender))
    click.echo(f"Extracting message samples... {min(usable, limit)} of {usable} usable message(s)", err=True)

    if dry_run:
        click.echo(analysis_prompt(sender, text))
        return

    click.echo("Building psychological profile...", err=True)
    try:
        system_prompt = build_persona(sender, text, config)
    except Exception as e:
        raise click.ClickException(f"Analysis failed: {e}") from e

    if output:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(system_prompt.rstrip() + "\n")
        path = output
    else:
        path = save_persona(sender, system_prompt, config)
    click.echo(f"Persona saved to {path} ({len(system_prompt)} chars)", err=True)
    click.echo(system_prompt)


@cli.command()
@click.argument("chat_file", required=False, type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--sender", "-s", help="Persona to chat with (exact name)")
@click.option("--persona", "persona_file", type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Use a saved system prompt file")
@click.option("--rebuild", is_flag=True, help="Re-analyze even if a saved persona exists")
@click.pass_context
def chat(
    ctx: click.Context,
    chat_file: Path | None,
    sender: str | None,
    persona_file: Path | None,
    rebuild: bool,
) -> None:
    """Chat with SENDER's persona. Type /reset to start over, /quit to leave."""
    from .chat import ChatSession
    from .persona import build_persona, load_persona, save_persona
    from .sample import select_sample

    config = ctx.obj["config"]

    if persona_file:
        system_prompt = persona_file.read_text().strip()
        name = sender or persona_file.stem
    elif sender:
        name = sender
        system_prompt = None if rebuild else load_persona(sender, config)
        if system_prompt is None:
            if chat_file is None:
                raise click.UsageError("No saved persona for this sender; pass CHAT_FILE to build one.")
            messages = _load_messages(chat_file)
            _require_sender(messages, sender)
            text = select_sample(messages, sender, config.sample_size)
            if not text:
                raise click.ClickException(f"No usable messages from {sender!r} to analyze.")
            click.echo("Building psychological profile...", err=True)
            try:
                system_prompt = build_persona(sender, text, config)
            except Exception as e:
                raise click.ClickException(f"Analysis failed: {e}") from e
            save_persona(sender, system_prompt, config)
    else:
        raise click.UsageError("Pass --sender or --persona.")

    session = ChatSession(persona=name, system_prompt=system_prompt, config=config)
    click.echo(session.greeting)

    while True:
        try:
            text = click.prompt("you", prompt_suffix="> ", default="", show_default=False)
        except (EOFError, click.Abort):
            click.echo()
            break
        text = text.strip()
        if not text:
            continue
        if text in ("/quit", "/exit"):
            break
        if text == "/reset":
            session.reset()
            click.echo(session.greeting)
            continue
        try:
            reply = session.send(text)
        except Exception as e:
            click.echo(f"Failed to send message: {e}", err=True)
            continue
        click.echo(f"{name}> {reply}")


@cli.command()
@click.pass_context
def init(ctx: click.Context) -> None:
    """Create the env file for API keys."""
    config = ctx.obj["config"]
    config.ensure_data_dir()

    if config.ensure_env_file():
        click.echo(f"Created {config.env_file}")
        click.echo(f"  Add your API key: {config.env_file}")
    else:
        click.echo(f"Env file: {config.env_file} (already exists)")


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show configuration and saved personas."""
    config = ctx.obj["config"]

    click.echo("Persona Mirror Status")
    click.echo("=" * 40)

    click.echo(f"\nData dir: {config.data_dir}")
    click.echo(f"  Exists: {config.data_dir.exists()}")

    if config.personas_dir.exists():
        saved = sorted(p.stem for p in config.personas_dir.glob("*.md"))
        click.echo(f"\nSaved personas: {len(saved)}")
        for name in saved:
            click.echo(f"  {name}")
    else:
        click.echo("\nSaved personas: none yet")

    click.echo(f"\nEnv file: {config.env_file}")
    if config.env_file.exists():
        # Count non-comment, non-empty lines (i.e. actual key assignments)
        env_lines = [
            l.strip() for l in config.env_file.read_text().splitlines()
            if l.strip() and not l.strip().startswith("#")
        ]
        click.echo(f"  Exists: yes ({len(env_lines)} key(s) configured)")
    else:
        click.echo("  Exists: no (run 'persona init' to create)")

    click.echo(f"\nAnthropic API key: {'set' if os.environ.get('ANTHROPIC_API_KEY') else 'not set'}")
    click.echo(f"OpenAI API key: {'set' if os.environ.get('OPENAI_API_KEY') else 'not set'}")
    click.echo(f"Sample size: {config.sample_size}")

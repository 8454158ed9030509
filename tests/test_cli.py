"""Tests for the persona CLI."""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from persona_mirror.cli import NO_MESSAGES_ERROR, cli
from persona_mirror.config import Config

FIXTURES = Path(__file__).parent / "fixtures"
ANDROID = str(FIXTURES / "android-chat.txt")


@pytest.fixture(autouse=True)
def isolated_dirs(tmp_path, monkeypatch):
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.delenv("PM_SAMPLE_SIZE", raising=False)
    monkeypatch.delenv("PM_LLM_PROVIDER", raising=False)


@pytest.fixture()
def runner():
    return CliRunner()


class TestParticipants:
    def test_lists_senders_with_counts(self, runner):
        result = runner.invoke(cli, ["participants", ANDROID])
        assert result.exit_code == 0
        assert "7 message(s) from 2 participant(s)" in result.output
        assert "Alice (4)" in result.output
        assert "Bob (3)" in result.output

    def test_json(self, runner):
        result = runner.invoke(cli, ["participants", ANDROID, "--json"])
        assert result.exit_code == 0
        assert json.loads(result.output) == [
            {"sender": "Alice", "messages": 4},
            {"sender": "Bob", "messages": 3},
        ]

    def test_no_messages_is_an_error(self, runner):
        result = runner.invoke(cli, ["participants", str(FIXTURES / "no-headers.txt")])
        assert result.exit_code == 1
        assert NO_MESSAGES_ERROR in result.output


class TestSample:
    def test_prints_sample(self, runner):
        result = runner.invoke(cli, ["sample", ANDROID, "--sender", "Bob", "-n", "1"])
        assert result.exit_code == 0
        assert result.output == "see you tomorrow then\n"

    def test_unknown_sender(self, runner):
        result = runner.invoke(cli, ["sample", ANDROID, "--sender", "Zoe"])
        assert result.exit_code == 1
        assert "Alice, Bob" in result.output


class TestAnalyze:
    def test_dry_run_prints_prompt_without_llm(self, runner):
        with patch("persona_mirror.persona.generate") as mock_generate:
            result = runner.invoke(cli, ["analyze", ANDROID, "--sender", "Alice", "--dry-run"])
        assert result.exit_code == 0
        assert "lol same tbh" in result.output
        assert not mock_generate.called

    @patch("persona_mirror.persona.generate")
    def test_saves_persona(self, mock_generate, runner, tmp_path):
        mock_generate.return_value = "You are Alice. keep it lowercase."
        result = runner.invoke(cli, ["analyze", ANDROID, "--sender", "Alice"])
        assert result.exit_code == 0
        assert "You are Alice." in result.output
        saved = Config(data_dir=tmp_path / "data" / "persona-mirror").persona_path("Alice")
        assert saved.read_text() == "You are Alice. keep it lowercase.\n"

    @patch("persona_mirror.persona.generate")
    def test_output_option(self, mock_generate, runner, tmp_path):
        mock_generate.return_value = "You are Bob."
        out = tmp_path / "bob.md"
        result = runner.invoke(cli, ["analyze", ANDROID, "--sender", "Bob", "-o", str(out)])
        assert result.exit_code == 0
        assert out.read_text() == "You are Bob.\n"

    @patch("persona_mirror.persona.generate")
    def test_llm_failure_reported(self, mock_generate, runner):
        mock_generate.side_effect = RuntimeError("quota exceeded")
        result = runner.invoke(cli, ["analyze", ANDROID, "--sender", "Alice"])
        assert result.exit_code == 1
        assert "Analysis failed: quota exceeded" in result.output

    def test_empty_sample_is_an_error(self, runner, tmp_path):
        chat = tmp_path / "chat.txt"
        chat.write_text("1/2/23, 8:00 - Ann: <Media omitted>\n1/2/23, 8:01 - Ann: ok\n")
        result = runner.invoke(cli, ["analyze", str(chat), "--sender", "Ann"])
        assert result.exit_code == 1
        assert "No usable messages" in result.output


class TestChat:
    @patch("persona_mirror.chat.generate")
    def test_chat_with_persona_file(self, mock_generate, runner, tmp_path):
        mock_generate.return_value = "nm, u?"
        persona_file = tmp_path / "Alice.md"
        persona_file.write_text("You are Alice.")

        result = runner.invoke(cli, ["chat", "--persona", str(persona_file)], input="hey\n/quit\n")

        assert result.exit_code == 0
        assert "(Connected as Alice) Hey, what's up?" in result.output
        assert "Alice> nm, u?" in result.output
        assert mock_generate.call_args.kwargs["system_prompt"] == "You are Alice."

    @patch("persona_mirror.chat.generate")
    @patch("persona_mirror.persona.generate")
    def test_chat_builds_missing_persona(self, mock_build, mock_chat, runner):
        mock_build.return_value = "You are Bob."
        mock_chat.return_value = "sup"

        result = runner.invoke(cli, ["chat", ANDROID, "--sender", "Bob"], input="hi\n")

        assert result.exit_code == 0
        assert mock_build.called
        assert "Bob> sup" in result.output

    @patch("persona_mirror.chat.generate")
    def test_send_failure_keeps_session_alive(self, mock_generate, runner, tmp_path):
        mock_generate.side_effect = [RuntimeError("timeout"), "back"]
        persona_file = tmp_path / "Alice.md"
        persona_file.write_text("You are Alice.")

        result = runner.invoke(cli, ["chat", "--persona", str(persona_file)], input="one\ntwo\n/quit\n")

        assert result.exit_code == 0
        assert "Failed to send message: timeout" in result.output
        assert "Alice> back" in result.output

    def test_requires_sender_or_persona(self, runner):
        result = runner.invoke(cli, ["chat"])
        assert result.exit_code == 2


class TestInitAndStatus:
    def test_init_creates_env_file(self, runner, tmp_path):
        result = runner.invoke(cli, ["init"])
        assert result.exit_code == 0
        assert (tmp_path / "config" / "persona-mirror" / "env").exists()

        again = runner.invoke(cli, ["init"])
        assert "already exists" in again.output

    def test_status(self, runner):
        result = runner.invoke(cli, ["status"])
        assert result.exit_code == 0
        assert "Persona Mirror Status" in result.output
        assert "Sample size: 400" in result.output

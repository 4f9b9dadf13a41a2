"""Tests for prompt snapshot files."""

from datetime import datetime, timezone
from pathlib import Path

from completion_core.config import AppConfig
from completion_core.llm.prompt_logger import (
    PromptLogger,
    format_prompt,
    slugify,
    snapshot_stem,
)
from completion_core.models.llm import ModelTier


class TestSnapshotNaming:
    """Test snapshot file naming."""

    def test_slugify(self):
        """Test operation names become filesystem-safe."""
        assert slugify("Orchestrator Response") == "orchestrator-response"
        assert slugify("../../etc/passwd") == "etc-passwd"
        assert slugify("reconciler_analysis") == "reconciler_analysis"
        assert slugify("!!!") == "call"

    def test_snapshot_stem(self):
        """Test stems sort by time."""
        moment = datetime(2025, 1, 2, 3, 4, 5, 678, tzinfo=timezone.utc)

        assert snapshot_stem("op", moment) == "20250102T030405000678Z_op"
        assert snapshot_stem("a", moment) < snapshot_stem(
            "a", moment.replace(second=6)
        )


class TestFormatPrompt:
    """Test prompt rendering."""

    def test_contains_every_message(self, sample_request):
        """Test the snapshot holds model, system prompt and messages."""
        text = format_prompt(sample_request, "claude-x", ModelTier.QUALITY)

        assert "model: claude-x" in text
        assert "tier: quality" in text
        assert "=== SYSTEM ===" in text
        assert sample_request.system_prompt in text
        assert text.count("=== USER ===") == 2
        assert "=== ASSISTANT ===" in text


class TestPromptLogger:
    """Test snapshot writer."""

    def test_writes_prompt_and_response(self, test_config, sample_request):
        """Test both files land in the log directory."""
        logger = PromptLogger(test_config)

        prompt_path = logger.log_prompt("stem", sample_request, "m", ModelTier.QUALITY)
        response_path = logger.log_response("stem", "Hello there")

        assert prompt_path == Path(test_config.prompt_log_dir) / "stem_prompt.txt"
        assert response_path.read_text(encoding="utf-8") == "Hello there"

    def test_disabled(self, tmp_path, sample_request):
        """Test nothing is written when disabled."""
        settings = AppConfig(
            disable_prompt_logging=True, prompt_log_dir=str(tmp_path / "prompts")
        )
        logger = PromptLogger(settings)

        assert logger.enabled is False
        assert logger.log_prompt("stem", sample_request, "m", ModelTier.FAST) is None
        assert logger.log_response("stem", "x") is None
        assert not (tmp_path / "prompts").exists()

    def test_write_failure_is_swallowed(self, tmp_path, sample_request):
        """Test filesystem errors never raise."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("file")
        settings = AppConfig(prompt_log_dir=str(blocker / "prompts"))
        logger = PromptLogger(settings)

        assert logger.log_prompt("stem", sample_request, "m", ModelTier.FAST) is None
        assert logger.log_response("stem", "x") is None

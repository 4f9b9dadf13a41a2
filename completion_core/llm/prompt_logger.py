"""
Prompt and response snapshots for debugging.

Writes one prompt file before and one response file after each live call.
Entirely best-effort: filesystem errors are logged and swallowed.
"""

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from completion_core.config import AppConfig
from completion_core.models.llm import CompletionRequest, ModelTier
from completion_core.utils.logger import get_logger

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-z0-9_-]+")


def slugify(value: str) -> str:
    """
    Sanitize an operation name into a filesystem-safe slug.

    Args:
        value: Raw operation or call-type name

    Returns:
        Lowercase slug of [a-z0-9_-], "call" if nothing survives
    """
    slug = _UNSAFE_CHARS.sub("-", value.lower()).strip("-")
    return slug or "call"


def snapshot_stem(operation: str, now: Optional[datetime] = None) -> str:
    """
    Build a time-ordered file stem for one call.

    Args:
        operation: Operation name
        now: Timestamp (defaults to current UTC time)

    Returns:
        Stem like 20250101T120000123456Z_orchestrator-response
    """
    moment = now or datetime.now(timezone.utc)
    return f"{moment.strftime('%Y%m%dT%H%M%S%fZ')}_{slugify(operation)}"


def format_prompt(request: CompletionRequest, model: str, tier: ModelTier) -> str:
    """Render a request as a readable plaintext snapshot."""
    lines = [
        f"model: {model}",
        f"tier: {ModelTier(tier).value}",
        f"session: {request.session_id}",
        f"turn: {request.turn_id}",
        f"operation: {request.operation}",
        "",
        "=== SYSTEM ===",
        request.system_prompt,
    ]
    for message in request.messages:
        lines.extend(["", f"=== {message.role.upper()} ===", message.content])

    return "\n".join(lines) + "\n"


class PromptLogger:
    """
    Best-effort writer of prompt/response snapshot files.

    Never raises: a failed snapshot must not fail a completion.
    """

    def __init__(self, settings: AppConfig):
        """
        Initialize prompt logger.

        Args:
            settings: Configuration with log directory and disable toggle
        """
        self._enabled = not settings.disable_prompt_logging
        self._log_dir = Path(settings.prompt_log_dir)

    @property
    def enabled(self) -> bool:
        """Check if snapshots are written."""
        return self._enabled

    def log_prompt(
        self, stem: str, request: CompletionRequest, model: str, tier: ModelTier
    ) -> Optional[Path]:
        """
        Write the outgoing prompt.

        Args:
            stem: File stem from snapshot_stem()
            request: Completion request
            model: Model identifier
            tier: Effective tier

        Returns:
            Written path, or None if disabled or failed
        """
        if not self._enabled:
            return None

        try:
            return self._write(f"{stem}_prompt.txt", format_prompt(request, model, tier))
        except Exception as e:
            logger.warning("Failed to write prompt snapshot", stem=stem, error=str(e))
            return None

    def log_response(self, stem: str, response: str) -> Optional[Path]:
        """
        Write the response text.

        Args:
            stem: File stem matching the prompt file
            response: Response transcript

        Returns:
            Written path, or None if disabled or failed
        """
        if not self._enabled:
            return None

        try:
            return self._write(f"{stem}_response.txt", response)
        except Exception as e:
            logger.warning("Failed to write response snapshot", stem=stem, error=str(e))
            return None

    def _write(self, filename: str, content: str) -> Path:
        self._log_dir.mkdir(parents=True, exist_ok=True)
        path = self._log_dir / filename
        path.write_text(content, encoding="utf-8")
        logger.debug("Wrote snapshot", path=str(path))
        return path

"""Relay that asks the upstream generator to materialize notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Notifications generated successfully"
FAILURE_MESSAGE = "Failed to generate notifications"


class NotificationGenerator(Protocol):
    """Upstream procedure; must not duplicate notifications when re-run."""

    async def generate(self) -> None: ...


@dataclass(frozen=True)
class GenerationResult:
    success: bool
    message: str
    error: str | None = None


async def trigger_generation(generator: NotificationGenerator) -> GenerationResult:
    """Run ``generator`` once and report the outcome without touching local state."""

    try:
        await generator.generate()
    except Exception as exc:
        logger.error("Error generating notifications: %s", exc)
        return GenerationResult(success=False, message=FAILURE_MESSAGE, error=str(exc))
    return GenerationResult(success=True, message=SUCCESS_MESSAGE)


__all__ = [
    "FAILURE_MESSAGE",
    "GenerationResult",
    "NotificationGenerator",
    "SUCCESS_MESSAGE",
    "trigger_generation",
]

"""
Pacing waits for scroll settling, UI settling and remote-call spacing.

Every wait in a harvest/sweep run goes through a Pacer so that:
- each wait is an awaitable yield point (cancellation is observed on resumption)
- tests can disable real sleeping while still recording requested delays
"""

from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional


DEFAULT_JITTER_MAX_MS = 0  # Random jitter added on top of each requested delay


SleepFn = Callable[[float], Awaitable[None]]


@dataclass
class PacingConfig:
    """
    Configuration for pacing waits.

    Attributes:
        jitter_max_ms: Maximum random jitter added to each wait.
        enabled: If False, waits are recorded but not slept (for testing/dry runs).
    """
    jitter_max_ms: int = DEFAULT_JITTER_MAX_MS
    enabled: bool = True

    def to_persist_dict(self) -> dict:
        return {
            "jitter_max_ms": self.jitter_max_ms,
            "enabled": self.enabled,
        }

    @classmethod
    def from_persist_dict(cls, data: dict) -> "PacingConfig":
        jitter_max = data.get("jitter_max_ms", DEFAULT_JITTER_MAX_MS)
        try:
            jitter_max = int(jitter_max)
        except (TypeError, ValueError):
            jitter_max = DEFAULT_JITTER_MAX_MS

        return cls(
            jitter_max_ms=max(0, jitter_max),
            enabled=bool(data.get("enabled", True)),
        )


class Pacer:
    """
    Async delay helper.

    Usage:
        pacer = Pacer(PacingConfig())
        await pacer.sleep_ms(timing.scroll_delay_ms)

    The total requested/slept time is tracked for run summaries and tests.
    """

    def __init__(
        self,
        config: Optional[PacingConfig] = None,
        *,
        sleep: Optional[SleepFn] = None,
    ) -> None:
        self._config = config or PacingConfig()
        self._sleep: SleepFn = sleep or asyncio.sleep
        self._waits: list[int] = []

    @property
    def config(self) -> PacingConfig:
        return self._config

    @property
    def waits_ms(self) -> tuple[int, ...]:
        """Requested delays (without jitter), in call order."""
        return tuple(self._waits)

    @property
    def total_requested_ms(self) -> int:
        return sum(self._waits)

    def _compute_delay_s(self, delay_ms: int) -> float:
        if not self._config.enabled:
            return 0.0
        jitter_ms = 0.0
        if self._config.jitter_max_ms > 0:
            jitter_ms = random.uniform(0, self._config.jitter_max_ms)
        return max(0.0, (delay_ms + jitter_ms) / 1000.0)

    async def sleep_ms(self, delay_ms: int) -> float:
        """
        Wait `delay_ms` (+ jitter) milliseconds.

        Returns:
            The actual delay waited (in seconds).
        """
        delay_ms = max(0, int(delay_ms))
        self._waits.append(delay_ms)
        delay_s = self._compute_delay_s(delay_ms)
        # Always yield, even for zero delays.
        await self._sleep(delay_s)
        return delay_s

    def reset(self) -> None:
        self._waits.clear()

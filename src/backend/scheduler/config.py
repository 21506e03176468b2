from __future__ import annotations

from dataclasses import dataclass


@dataclass
class SchedulerConfig:
    # Capped by settings.models.MAX_BROWSER_SESSIONS when driven by the app.
    max_concurrent: int = 1

    def set_max_concurrent(self, value: int) -> None:
        if value < 1:
            raise ValueError("Max Concurrent 必须 >= 1")
        self.max_concurrent = value

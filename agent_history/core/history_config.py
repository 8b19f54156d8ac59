"""History windowing policy configuration.

All thresholds are objective message counts with no heuristics.

- COMPACTION_THRESHOLD: stored length at/above which compaction fires
- TRIM_SIZE: messages removed per compaction (one more when the last removed
  message is a tool response); also the size of the batch handed to the summarizer
- WINDOW_SIZE: messages returned per retrieval (one more on lead-in repair)
"""

from dataclasses import dataclass

from agent_history.config.settings import Settings

COMPACTION_THRESHOLD = 10

TRIM_SIZE = 5

WINDOW_SIZE = 5


@dataclass(frozen=True)
class HistoryPolicy:
    """Compaction and retrieval thresholds for a HistoryWindow."""

    compaction_threshold: int = COMPACTION_THRESHOLD
    trim_size: int = TRIM_SIZE
    window_size: int = WINDOW_SIZE

    def __post_init__(self) -> None:
        for name in ("compaction_threshold", "trim_size", "window_size"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got: {getattr(self, name)}")
        # a tool-boundary cut removes trim_size + 1 and must leave at least one message
        if self.trim_size + 1 >= self.compaction_threshold:
            raise ValueError(
                f"trim_size + 1 ({self.trim_size + 1}) must be smaller than compaction_threshold ({self.compaction_threshold})"
            )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HistoryPolicy":
        return cls(
            compaction_threshold=settings.compaction_threshold,
            trim_size=settings.trim_size,
            window_size=settings.window_size,
        )

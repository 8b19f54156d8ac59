"""History window observability.

Logging-only counters for compaction and retrieval. No side effects beyond
structured logs; raw message content is never logged.
"""

from loguru import logger

# In-process counters (reset on restart)
HISTORY_COUNTERS: dict[str, int] = {
    "messages_appended": 0,
    "compactions_run": 0,
    "summaries_created": 0,
    "lead_in_repairs": 0,
    "summarization_failures": 0,
}


def increment_history_counter(counter_name: str, amount: int = 1) -> None:
    """Increment a history counter.

    Args:
        counter_name: Counter name (must be in HISTORY_COUNTERS)
        amount: Increment step
    """
    if counter_name in HISTORY_COUNTERS:
        HISTORY_COUNTERS[counter_name] += amount
    else:
        logger.warning(
            "Attempted to increment unknown history counter",
            counter_name=counter_name,
            available_counters=list(HISTORY_COUNTERS.keys()),
        )


def get_history_counters() -> dict[str, int]:
    return dict(HISTORY_COUNTERS)


def reset_history_counters() -> None:
    for name in HISTORY_COUNTERS:
        HISTORY_COUNTERS[name] = 0


def log_history_counters_snapshot() -> None:
    """Log current history counter values."""
    logger.info("history_counters_snapshot", **HISTORY_COUNTERS)

from pathlib import Path

import pytest
from loguru import logger

from agent_history.config.settings import Settings
from agent_history.core.history_config import COMPACTION_THRESHOLD, TRIM_SIZE, WINDOW_SIZE, HistoryPolicy
from agent_history.core.history_metrics import (
    get_history_counters,
    increment_history_counter,
    log_history_counters_snapshot,
)
from agent_history.core.history_window import create_history_window
from agent_history.core.history_store import InMemoryHistoryStore, JsonFileHistoryStore
from agent_history.core.logger import configure_logging, setup_logger
from agent_history.core.summarizer import LLMSummarizer


def test_default_policy_matches_constants() -> None:
    policy = HistoryPolicy()
    assert (policy.compaction_threshold, policy.trim_size, policy.window_size) == (10, 5, 5)
    assert (COMPACTION_THRESHOLD, TRIM_SIZE, WINDOW_SIZE) == (10, 5, 5)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"compaction_threshold": 0},
        {"trim_size": -1},
        {"window_size": 0},
        {"compaction_threshold": 5, "trim_size": 5},
        {"compaction_threshold": 6, "trim_size": 5},
    ],
)
def test_invalid_policy_is_rejected(kwargs: dict[str, int]) -> None:
    with pytest.raises(ValueError):
        HistoryPolicy(**kwargs)


def test_policy_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HISTORY_COMPACTION_THRESHOLD", "20")
    monkeypatch.setenv("HISTORY_TRIM_SIZE", "8")
    monkeypatch.setenv("HISTORY_WINDOW_SIZE", "6")

    policy = HistoryPolicy.from_settings(Settings())

    assert policy == HistoryPolicy(compaction_threshold=20, trim_size=8, window_size=6)


def test_create_history_window_from_settings(tmp_path: Path) -> None:
    settings = Settings(HISTORY_DB_PATH=str(tmp_path / "db.json"), SUMMARY_MODEL="gpt-4.1-mini", HISTORY_WINDOW_SIZE=3)

    history = create_history_window(settings)

    assert isinstance(history.store, JsonFileHistoryStore)
    assert isinstance(history.summarizer, LLMSummarizer)
    assert history.summarizer.model_name == "gpt-4.1-mini"
    assert history.policy.window_size == 3


def test_create_history_window_accepts_overrides() -> None:
    store = InMemoryHistoryStore()
    summarizer = object()

    history = create_history_window(Settings(), store=store, summarizer=summarizer)

    assert history.store is store
    assert history.summarizer is summarizer


def test_history_counters() -> None:
    increment_history_counter("compactions_run")
    increment_history_counter("messages_appended", 3)
    increment_history_counter("not_a_counter")

    counters = get_history_counters()
    assert counters["compactions_run"] == 1
    assert counters["messages_appended"] == 3
    assert "not_a_counter" not in counters
    log_history_counters_snapshot()


def test_setup_logger_writes_file(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "history.log"

    setup_logger(level="DEBUG", log_file=str(log_file))
    logger.debug("logging check")

    assert log_file.exists()


def test_configure_logging_uses_log_file_setting(tmp_path: Path) -> None:
    log_file = tmp_path / "history.log"

    configure_logging(Settings(LOG_FILE=str(log_file), LOG_LEVEL="info"))
    logger.info("history_compacted", removed=5, event="history_compacted")

    assert "history_compacted" in log_file.read_text(encoding="utf-8")

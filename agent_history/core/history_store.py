"""Persisted history store backends.

The history window talks to its store only through the HistoryStore protocol:
a single document {messages, summary} that is loaded whole and overwritten whole.

Backends:
- JsonFileHistoryStore: one JSON file on disk (atomic replace on write)
- RedisHistoryStore: one JSON string under a single Redis key
- InMemoryHistoryStore: process-local fake used by tests

Core invariant: load() of a missing document returns an empty HistoryState;
load()/write() failures are wrapped in HistoryStoreError and propagated.
"""

import asyncio
import json
import os
import tempfile
from pathlib import Path
from typing import Protocol

import redis.asyncio as aioredis
from loguru import logger
from pydantic import ValidationError
from redis.exceptions import RedisError

from agent_history.config.settings import Settings
from agent_history.core.errors import HistoryStoreError
from agent_history.core.message import HistoryState


class HistoryStore(Protocol):
    """Load/write access to the single persisted HistoryState document."""

    async def load(self) -> HistoryState: ...

    async def write(self, state: HistoryState) -> None: ...


def _serialize_state(state: HistoryState) -> str:
    return json.dumps(state.to_document(), ensure_ascii=False, indent=2)


def _deserialize_state(raw: str) -> HistoryState:
    """Deserialize a stored document.

    Raises:
        ValueError: If the document is not valid JSON or does not match the schema
    """
    try:
        data = json.loads(raw)
        return HistoryState.model_validate(data)
    except (json.JSONDecodeError, ValidationError, TypeError) as e:
        raise ValueError(f"Malformed history document: {e}") from e


class JsonFileHistoryStore:
    """History document persisted as a single JSON file."""

    def __init__(self, path: str | Path = "db.json") -> None:
        self.path = Path(path)

    async def load(self) -> HistoryState:
        return await asyncio.to_thread(self._load_sync)

    async def write(self, state: HistoryState) -> None:
        await asyncio.to_thread(self._write_sync, state)

    def _load_sync(self) -> HistoryState:
        if not self.path.exists():
            logger.debug("History file not found, starting empty", path=str(self.path), event="history_store_default")
            return HistoryState()
        try:
            raw = self.path.read_text(encoding="utf-8")
            return _deserialize_state(raw)
        except (OSError, ValueError) as e:
            logger.warning(
                "Failed to load history document",
                path=str(self.path),
                error=str(e),
                event="history_store_load_failed",
            )
            raise HistoryStoreError("load", str(self.path), e) from e

    def _write_sync(self, state: HistoryState) -> None:
        text = _serialize_state(state)
        tmp_name: str | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=str(self.path.parent), suffix=".tmp"
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            logger.warning(
                "Failed to write history document",
                path=str(self.path),
                error=str(e),
                event="history_store_write_failed",
            )
            raise HistoryStoreError("write", str(self.path), e) from e

        logger.debug(
            "History document written",
            path=str(self.path),
            message_count=len(state.messages),
            event="history_store_write",
        )


class RedisHistoryStore:
    """History document persisted as a JSON string under one Redis key.

    No TTL is set: the document lives as long as the key does.
    """

    def __init__(self, redis_url: str, key: str = "agent_history:state") -> None:
        self.redis_url = redis_url
        self.key = key

    def _get_redis_client(self) -> aioredis.Redis:
        """Get Redis client instance.

        Returns:
            Async Redis client with string decoding enabled
        """
        return aioredis.from_url(self.redis_url, decode_responses=True)

    async def load(self) -> HistoryState:
        client = self._get_redis_client()
        try:
            raw = await client.get(self.key)
            if raw is None:
                logger.debug("History key not found, starting empty", key=self.key, event="history_store_default")
                return HistoryState()
            return _deserialize_state(raw)
        except (RedisError, ValueError) as e:
            logger.warning(
                "Failed to load history document from Redis",
                key=self.key,
                error=str(e),
                event="history_store_load_failed",
            )
            raise HistoryStoreError("load", self.key, e) from e
        finally:
            await client.aclose()

    async def write(self, state: HistoryState) -> None:
        client = self._get_redis_client()
        try:
            await client.set(self.key, _serialize_state(state))
        except RedisError as e:
            logger.warning(
                "Failed to write history document to Redis",
                key=self.key,
                error=str(e),
                event="history_store_write_failed",
            )
            raise HistoryStoreError("write", self.key, e) from e
        finally:
            await client.aclose()

        logger.debug(
            "History document written to Redis",
            key=self.key,
            message_count=len(state.messages),
            event="history_store_write",
        )


class InMemoryHistoryStore:
    """Process-local store. Loads return copies so unwritten changes stay invisible."""

    def __init__(self, state: HistoryState | None = None) -> None:
        self._state = state.model_copy(deep=True) if state is not None else HistoryState()
        self.write_count = 0

    async def load(self) -> HistoryState:
        return self._state.model_copy(deep=True)

    async def write(self, state: HistoryState) -> None:
        self._state = state.model_copy(deep=True)
        self.write_count += 1


def build_history_store(settings: Settings) -> HistoryStore:
    """Create the configured store backend."""
    if settings.history_backend == "redis":
        return RedisHistoryStore(settings.redis_url, key=settings.history_redis_key)
    return JsonFileHistoryStore(settings.history_db_path)

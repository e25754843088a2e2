"""
Cache-Aside lookup and write-through for AI analysis results.
- Lookup: try Redis; on miss read the ai_analyses row, warm Redis, return.
- Upsert: DB first (find-or-create, set one slot), then best-effort Redis.
An empty slot (None, {} or []) counts as a miss.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.errors import PersistenceError
from app.repositories.analysis_repository import AnalysisRepository
from app.services.analysis_keys import AnalysisTask, Fingerprint
from app.services.redis_analysis_cache import RedisAnalysisCache

logger = logging.getLogger(__name__)


@dataclass
class CachedAnalysis:
    value: Any
    text: str


def _is_empty(value: Any) -> bool:
    return value is None or (isinstance(value, (dict, list, str)) and len(value) == 0)


class AnalysisCache:
    def __init__(
        self,
        db: Session,
        redis_cache: RedisAnalysisCache | None = None,
        repository: AnalysisRepository | None = None,
    ):
        self._db = db
        self._redis = redis_cache
        self._repo = repository or AnalysisRepository()

    async def lookup(self, fingerprint: Fingerprint, task: AnalysisTask) -> CachedAnalysis | None:
        spec = task.spec
        cache_key = fingerprint.cache_key
        if self._redis:
            hit = await self._redis.get(cache_key, spec.slot_column)
            if hit is not None and not _is_empty(hit["value"]):
                return CachedAnalysis(value=hit["value"], text=hit["text"])

        loop = asyncio.get_running_loop()
        row = await loop.run_in_executor(
            None,
            lambda: self._repo.find_by_key(self._db, fingerprint.owner_id, cache_key),
        )
        if row is None:
            return None
        value = getattr(row, spec.slot_column)
        if _is_empty(value):
            return None
        text = getattr(row, spec.text_column) or ""
        if self._redis:
            await self._redis.set(cache_key, spec.slot_column, value, text)
        return CachedAnalysis(value=value, text=text)

    async def upsert(
        self,
        fingerprint: Fingerprint,
        task: AnalysisTask,
        value: Any,
        text: str,
        language: str = "",
    ) -> None:
        spec = task.spec

        def save():
            try:
                self._repo.set_slot(
                    self._db,
                    fingerprint,
                    slot_column=spec.slot_column,
                    value=value,
                    text_column=spec.text_column,
                    text=text,
                    language=language,
                )
            except SQLAlchemyError:
                self._db.rollback()
                raise

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, save)
        except SQLAlchemyError as e:
            logger.exception("Saving %s result failed", task.value)
            raise PersistenceError(f"Could not save {task.value} result") from e
        if self._redis:
            await self._redis.set(fingerprint.cache_key, spec.slot_column, value, text)

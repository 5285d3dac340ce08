"""
Store for in-progress quizzes, keyed by quiz id.

``redis`` keeps each quiz as JSON with a TTL; ``memory`` keeps them in the
process (single worker, development and tests).
"""
import logging
import threading
import time
from typing import Dict, Optional, Tuple

import redis

from kruai.core.config import settings
from kruai.core.errors import PersistenceError
from kruai.models.quiz import ActiveQuiz

logger = logging.getLogger(__name__)


def _rk(quiz_id: str) -> str:
    return f"quiz:{quiz_id}:session"


class RedisSessionStore:
    def __init__(self, client: redis.Redis, ttl: int):
        self.redis = client
        self.ttl = ttl

    def get(self, quiz_id: str) -> Optional[ActiveQuiz]:
        try:
            raw = self.redis.get(_rk(quiz_id))
        except redis.RedisError as e:
            raise PersistenceError("Quiz session store unavailable") from e
        if not raw:
            return None
        return ActiveQuiz.model_validate_json(raw)

    def put(self, quiz: ActiveQuiz) -> None:
        try:
            self.redis.set(_rk(quiz.quiz_id), quiz.model_dump_json(), ex=self.ttl)
        except redis.RedisError as e:
            raise PersistenceError("Quiz session store unavailable") from e

    def delete(self, quiz_id: str) -> None:
        try:
            self.redis.delete(_rk(quiz_id))
        except redis.RedisError as e:
            raise PersistenceError("Quiz session store unavailable") from e


class MemorySessionStore:
    def __init__(self, ttl: int):
        self.ttl = ttl
        self._items: Dict[str, Tuple[float, str]] = {}
        self._lock = threading.Lock()

    def get(self, quiz_id: str) -> Optional[ActiveQuiz]:
        with self._lock:
            item = self._items.get(quiz_id)
            if item is None:
                return None
            expires_at, raw = item
            if expires_at < time.monotonic():
                del self._items[quiz_id]
                return None
        return ActiveQuiz.model_validate_json(raw)

    def put(self, quiz: ActiveQuiz) -> None:
        with self._lock:
            now = time.monotonic()
            for quiz_id in [k for k, (expires_at, _) in self._items.items() if expires_at < now]:
                del self._items[quiz_id]
            self._items[quiz.quiz_id] = (now + self.ttl, quiz.model_dump_json())

    def delete(self, quiz_id: str) -> None:
        with self._lock:
            self._items.pop(quiz_id, None)


_store = None


def get_session_store():
    global _store
    if _store is None:
        if settings.SESSION_BACKEND == "redis":
            client = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
            _store = RedisSessionStore(client, settings.QUIZ_SESSION_TTL)
        else:
            _store = MemorySessionStore(settings.QUIZ_SESSION_TTL)
        logger.info("Quiz session store: %s", settings.SESSION_BACKEND)
    return _store

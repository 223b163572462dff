"""Idempotency helpers backed by Redis."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from hashlib import sha256
from typing import Any, Awaitable, Callable, TypeVar

from connectrix.domain.exceptions import IdempotencyConflict
from connectrix.infra.redis import redis_client
from connectrix.obs import metrics as obs_metrics
from connectrix.settings import settings

_LOG = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class IdempotencyRecord:
	"""Serialized value stored in Redis."""

	hash: str
	payload: Any

	def to_json(self) -> str:
		return json.dumps({"hash": self.hash, "payload": self.payload})

	@staticmethod
	def from_json(raw: str) -> "IdempotencyRecord":
		data = json.loads(raw)
		return IdempotencyRecord(hash=data.get("hash", ""), payload=data.get("payload"))


def compute_hash(*, body: Any | None) -> str:
	if body is None:
		return ""
	materialised = json.dumps(body, sort_keys=True, separators=(",", ":"), default=str)
	return sha256(materialised.encode()).hexdigest()


def _replay(raw: str, body_hash: str, deserializer: Callable[[Any], T] | None) -> T:
	record = IdempotencyRecord.from_json(raw)
	if record.hash != body_hash:
		obs_metrics.idempotency_event("conflict")
		raise IdempotencyConflict()
	obs_metrics.idempotency_event("replay")
	if deserializer:
		return deserializer(record.payload)
	return record.payload  # type: ignore[return-value]


async def resolve(
	*,
	scope: str,
	key: str | None,
	body_hash: str,
	producer: Callable[[], Awaitable[T]],
	serializer: Callable[[T], Any],
	deserializer: Callable[[Any], T] | None = None,
) -> T:
	"""Run `producer` once per (scope, key).

	A repeated key with the same body hash replays the stored response; a
	different body raises :class:`IdempotencyConflict`. Without a key the
	producer simply runs.
	"""
	if not key:
		return await producer()

	redis_key = f"connectrix:idemp:{scope}:{key}"
	cached = await redis_client.get(redis_key)
	if cached:
		return _replay(cached, body_hash, deserializer)

	result = await producer()
	record = IdempotencyRecord(hash=body_hash, payload=serializer(result))
	stored = await redis_client.set(redis_key, record.to_json(), ex=settings.idempotency_ttl_seconds, nx=True)
	if stored:
		obs_metrics.idempotency_event("stored")
		return result
	cached_after = await redis_client.get(redis_key)
	if cached_after:
		return _replay(cached_after, body_hash, deserializer)
	_LOG.warning("Idempotency key %s stored concurrently without payload", key)
	return result

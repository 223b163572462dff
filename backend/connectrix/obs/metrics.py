"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

REQUEST_COUNTER = Counter(
	"connectrix_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"connectrix_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

POSTS_CREATED = Counter(
	"connectrix_posts_created_total",
	"Feed posts created",
)

COMMENTS_CREATED = Counter(
	"connectrix_comments_created_total",
	"Comments created on feed posts",
)

LIKES_TOGGLED = Counter(
	"connectrix_likes_toggled_total",
	"Like toggles applied",
	["subject", "state"],
)

POST_SHARES = Counter(
	"connectrix_post_shares_total",
	"Post shares recorded",
)

MEMBERSHIPS_CREATED = Counter(
	"connectrix_memberships_created_total",
	"Club memberships created",
	["origin"],
)

MEMBERSHIPS_REMOVED = Counter(
	"connectrix_memberships_removed_total",
	"Voluntary club memberships removed",
)

DUES_PAID = Counter(
	"connectrix_dues_paid_total",
	"Club memberships transitioned to dues paid",
)

CLUBS_MATCHED = Histogram(
	"connectrix_clubs_matched",
	"Clubs matched per registration run",
	buckets=(0, 1, 2, 3, 4, 5, 6),
)

IDEMPOTENCY_EVENTS = Counter(
	"connectrix_idempotency_events_total",
	"Idempotency cache outcomes",
	["result"],
)

REDIS_UP = Gauge("connectrix_redis_up", "Redis reachability (1 = ok)")
POSTGRES_UP = Gauge("connectrix_postgres_up", "Postgres reachability (1 = ok)")


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def inc_posts_created() -> None:
	POSTS_CREATED.inc()


def inc_comments_created() -> None:
	COMMENTS_CREATED.inc()


def inc_like_toggled(subject: str, *, liked: bool) -> None:
	LIKES_TOGGLED.labels(subject=subject, state="liked" if liked else "unliked").inc()


def inc_post_shares() -> None:
	POST_SHARES.inc()


def inc_memberships_created(origin: str, count: int = 1) -> None:
	if count > 0:
		MEMBERSHIPS_CREATED.labels(origin=origin).inc(count)


def inc_memberships_removed() -> None:
	MEMBERSHIPS_REMOVED.inc()


def inc_dues_paid() -> None:
	DUES_PAID.inc()


def observe_clubs_matched(count: int) -> None:
	CLUBS_MATCHED.observe(count)


def idempotency_event(result: str) -> None:
	IDEMPOTENCY_EVENTS.labels(result=result).inc()


def mark_redis(ok: bool) -> None:
	REDIS_UP.set(1 if ok else 0)


def mark_postgres(ok: bool) -> None:
	POSTGRES_UP.set(1 if ok else 0)

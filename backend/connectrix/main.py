"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from connectrix.api import ops
from connectrix.api.errors import install_error_handlers
from connectrix.clubs.api import router as clubs_router
from connectrix.feed.api import router as feed_router
from connectrix.infra import postgres
from connectrix.obs import init as obs_init
from connectrix.settings import settings

API_PREFIX = "/api/v1"


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="Connectrix", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(ops.router)
app.include_router(clubs_router, prefix=API_PREFIX)
app.include_router(feed_router, prefix=API_PREFIX)

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import deps
from .config import Settings
from .routers import analysis, relay, session, tuning
from .services.relay import RelayHub

settings = Settings.from_env()

logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _relay_to_session(data: bytes):
    deps.get_session().feed_bytes(data, source="relay")


@asynccontextmanager
async def lifespan(app: FastAPI):
    hub = RelayHub()
    await hub.start()
    hub.add_tap(_relay_to_session, name="recording")
    app.state.relay = hub
    try:
        yield
    finally:
        await hub.stop()
        deps.set_capture(None)


app = FastAPI(title="Intonation Trainer Backend", lifespan=lifespan)

# CORS - frontend dev server origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(tuning.router, prefix="/api/tuning", tags=["tuning"])
app.include_router(analysis.router, prefix="/api/analysis", tags=["analysis"])
app.include_router(session.router, prefix="/api/session", tags=["session"])
app.include_router(relay.router, tags=["relay"])


@app.get("/health")
def health():
    return {"ok": True}

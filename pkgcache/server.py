"""pkgcache — FastAPI host for the cache purge scheduler and its metrics."""
from __future__ import annotations
from fastapi import FastAPI, HTTPException
from contextlib import asynccontextmanager
from pathlib import Path
import asyncio
import logging

from .config import Settings
from .metrics import router as metrics_router
from .purge.scheduler import PurgeScheduler

logger = logging.getLogger("pkgcache")


def _setup_logging(log_level: str = "info"):
    """Configure logging for the whole pkgcache logger tree."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    # lifespan may run more than once per process (tests)
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False


_settings: Settings | None = None
_scheduler: PurgeScheduler | None = None


def _load_settings() -> Settings:
    for path in ["pkgcache.yaml", "pkgcache.example.yaml"]:
        if Path(path).exists():
            return Settings.from_yaml(path)
    return Settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _settings, _scheduler
    _settings = _load_settings()
    _setup_logging(_settings.server.log_level)
    logger.info("pkgcache starting, cache_dir=%s repos=%s", _settings.cache_dir, _settings.repo_names)

    # Raises PurgeConfigError on a zero threshold, which aborts startup.
    _scheduler = PurgeScheduler(_settings)
    _scheduler.start()

    yield

    await _scheduler.stop()
    logger.info("pkgcache shutting down...")


app = FastAPI(title="pkgcache", version="0.1.0", lifespan=lifespan)
app.include_router(metrics_router)


@app.get("/health")
async def health():
    response: dict[str, object] = {"status": "ok"}
    if _scheduler:
        response["scheduler_state"] = _scheduler.state.value
        response["sweeps_completed"] = _scheduler.sweeps_completed
    return response


@app.get("/v1/purge/reports")
async def purge_reports():
    if not _scheduler:
        raise HTTPException(status_code=503, detail="Server not initialized")
    return {"reports": {repo: r.summary() for repo, r in _scheduler.last_reports.items()}}


@app.post("/v1/purge")
async def purge_now():
    """Run a sweep on demand; waits for any sweep already in progress."""
    if not _scheduler:
        raise HTTPException(status_code=503, detail="Server not initialized")
    reports = await asyncio.to_thread(_scheduler.run_sweep)
    return {"reports": [r.summary() for r in reports]}

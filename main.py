# ============================================================================
# PORT LEASE DAEMON - MAIN APPLICATION
# ============================================================================
# EPOCH: 1 - PORT LEASING
# STATUS: Core - FastAPI application entry point
# PURPOSE: Main application with expiry sweeper
# CREATED: 19 OCT 2026
# ============================================================================
"""
Port Lease Daemon Main Application

FastAPI application that:
1. Loads persisted leases and reconciles them against the current time
2. Serves allocate/release/heartbeat/list/lookup over HTTP
3. Runs the expiry sweeper in the background

Usage:
    uvicorn main:app --host 127.0.0.1 --port 3030
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from __version__ import __version__, BUILD_DATE, EPOCH
from core.config import get_defaults
from core.logging import configure_logging
from repositories import init_pool, close_pool, LeaseRepository
from services import LeaseTable
from sweeper import ExpirySweeper
from api.routes import router, set_services

# Health check system
from health import health_router, get_registry
from health.checks import set_lease_store, set_lease_table, set_sweeper

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "json").lower() == "json",
)
logger = logging.getLogger(__name__)

# Global instances
_sweeper: ExpirySweeper = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Any failure before the yield (bad config, unreachable database,
    reconciliation error) aborts startup.
    """
    global _sweeper

    logger.info(f"Starting Port Lease Daemon v{__version__} (Epoch {EPOCH}, Build {BUILD_DATE})")

    config = get_defaults().leases
    logger.info(
        f"Port range {config.min_port}-{config.max_port}, "
        f"default TTL {config.default_ttl_seconds}s, "
        f"sweep every {config.sweep_interval_seconds}s"
    )

    pool = await init_pool()
    logger.info("Database pool initialized")

    try:
        repo = LeaseRepository(pool)
        await repo.ensure_schema()

        table = await LeaseTable.open(repo, config)
        logger.info(f"Lease table loaded with {len(table)} active lease(s)")

        _sweeper = ExpirySweeper(table, config.sweep_interval_seconds)
        await _sweeper.start()
    except Exception:
        await close_pool()
        raise

    set_services(lease_table=table, sweeper=_sweeper)

    set_lease_store(repo)
    set_lease_table(table)
    set_sweeper(_sweeper)
    logger.info(f"Health checks initialized ({len(get_registry())} checks registered)")

    yield

    logger.info("Shutting down Port Lease Daemon...")

    await _sweeper.stop()
    await close_pool()

    logger.info("Port Lease Daemon stopped")


app = FastAPI(
    title="Port Lease Daemon",
    description=f"Epoch {EPOCH} TCP port leasing with heartbeats and expiry",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Health check routes (/livez, /readyz, /health)
app.include_router(health_router)

# Lease routes are served at the root (/alloc, /release, ...)
app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Port Lease Daemon",
        "version": __version__,
        "epoch": EPOCH,
        "build_date": BUILD_DATE,
        "status": "running",
        "docs": "/docs",
    }


# ============================================================================
# MAIN ENTRY POINT
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    server = get_defaults().server

    uvicorn.run(
        "main:app",
        host=server.host,
        port=server.port,
        reload=os.environ.get("RELOAD", "false").lower() == "true",
    )

"""FastAPI app: GET /status/{endpoint_id}, GET /captcha, POST /account, static site.

The monitor and token store are injected; the app lifespan starts their
background tasks and stops them on shutdown."""

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import Body, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from l2portal.accounts.base import AccountStore
from l2portal.accounts.registration import register_account
from l2portal.captcha.issuer import ChallengeIssuer
from l2portal.captcha.store import ExpiringTokenStore
from l2portal.config.settings import (
    get_captcha_config,
    get_database_config,
    get_monitor_config,
    get_server_config,
)
from l2portal.monitor.monitor import LivenessMonitor, build_monitor

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SEC = 60.0


def create_app(
    monitor: LivenessMonitor,
    issuer: ChallengeIssuer,
    accounts: AccountStore,
    static_dir: Optional[str] = None,
    cors_origins: Optional[List[str]] = None,
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SEC,
) -> FastAPI:
    """Build the API. Handlers only read monitor snapshots; none of them waits on a probe."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        monitor.start()
        issuer.store.start_sweeper(sweep_interval)
        try:
            yield
        finally:
            await monitor.stop()
            await issuer.store.stop_sweeper()
            accounts.close()

    app = FastAPI(title="l2portal", description="Account registration and server status API", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins if cors_origins is not None else ["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/status")
    def get_all_status() -> Dict[str, Any]:
        """Every monitored endpoint with host, port, state and last error."""
        return {
            "status": "success",
            "data": {endpoint_id: snap.to_dict() for endpoint_id, snap in monitor.statuses().items()},
        }

    @app.get("/status/{endpoint_id}")
    def get_status(endpoint_id: str) -> JSONResponse:
        """Last committed state string for one endpoint (unknown/checking/up/down/error). 404 if not monitored."""
        snap = monitor.status_of(endpoint_id)
        if snap is None:
            return JSONResponse(status_code=404, content={"status": "failed", "message": "Unknown server"})
        return JSONResponse(status_code=200, content={"status": "success", "data": snap.state.value})

    @app.get("/captcha")
    def get_captcha() -> Dict[str, Any]:
        """Issue a new captcha: captchaId plus PNG image as a data URI."""
        challenge = issuer.issue()
        return {"status": "success", "data": {"captchaId": challenge.token, "captcha": challenge.image}}

    @app.post("/account")
    def post_account(body: Dict[str, Any] = Body(...)) -> JSONResponse:
        """Register {login, password, captchaId, captchaCode}. Captcha is checked (and consumed) before storage."""
        result = register_account(issuer, accounts, body)
        return JSONResponse(status_code=result.status_code, content=result.payload)

    if static_dir:
        if Path(static_dir).is_dir():
            # Mounted last so API routes win
            app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")
        else:
            logger.warning("Static directory %s not found; static files disabled", static_dir)

    return app


def build_account_store(db_cfg: dict) -> AccountStore:
    """AccountStore for database.sink: "memory" or "postgres"."""
    if db_cfg.get("sink") == "memory":
        from l2portal.accounts.memory import InMemoryAccountStore

        logger.warning("Using in-memory account store; accounts are lost on restart")
        return InMemoryAccountStore()
    from l2portal.accounts.postgres_store import PostgresAccountStore

    return PostgresAccountStore(db_cfg.get("postgres") or {})


def build_app(config: dict) -> FastAPI:
    """Wire monitor, token store, issuer and account store from config."""
    server_cfg = get_server_config(config)
    captcha_cfg = get_captcha_config(config)

    monitor = build_monitor(get_monitor_config(config))
    issuer = ChallengeIssuer(
        ExpiringTokenStore(),
        ttl=captcha_cfg["ttl_ms"] / 1000.0,
        size=captcha_cfg["size"],
        render_options=captcha_cfg["render"],
    )
    accounts = build_account_store(get_database_config(config))
    return create_app(
        monitor,
        issuer,
        accounts,
        static_dir=server_cfg["static_dir"],
        cors_origins=server_cfg["cors_origins"],
        sweep_interval=captcha_cfg["sweep_interval_ms"] / 1000.0,
    )


def run_server(config: dict) -> None:
    """Start the API server (host/port from config.server)."""
    import uvicorn

    server_cfg = get_server_config(config)
    app = build_app(config)
    logger.info("l2portal server on %s:%s", server_cfg["host"], server_cfg["port"])
    uvicorn.run(app, host=server_cfg["host"], port=int(server_cfg["port"]), log_level="info")

"""HTTP layer: FastAPI app over the liveness monitor, captcha issuer and account store."""

from l2portal.server.app import build_app, create_app, run_server

__all__ = ["build_app", "create_app", "run_server"]

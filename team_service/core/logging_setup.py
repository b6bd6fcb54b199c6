import logging
import sys
import time

from fastapi import FastAPI, Request

logger = logging.getLogger("team_service.access")


def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logging once at bootstrap.

    Uvicorn keeps its own handlers; everything under ``team_service`` goes
    to stderr with a timestamped format.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    logging.captureWarnings(True)


def add_request_logging(app: FastAPI) -> None:
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} "
            f"({elapsed_ms:.1f}ms)"
        )
        return response

# src/expunge/server.py
"""Starlette ASGI application for the scheduler-triggered cleanup endpoint.

Usage:
    from expunge.server import create_app

    app = create_app(orchestrator, timeout_seconds=600)

Routes:
    GET|POST /      run one cleanup; terse JSON summary
    GET /health     liveness probe
"""

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from expunge.contracts.errors import ConfigurationError
from expunge.core.retention.deadline import Deadline
from expunge.core.retention.orchestrator import CleanupRunner


class CleanupServer:
    """Binds a CleanupRunner to HTTP routes.

    Overlapping requests are not serialised; each gets its own Deadline
    and its own outcome.
    """

    def __init__(self, runner: CleanupRunner, *, timeout_seconds: float) -> None:
        """Initialize server.

        Raises:
            ConfigurationError: If timeout_seconds is zero or negative
        """
        if timeout_seconds <= 0:
            raise ConfigurationError(f"timeout_seconds must be positive, got {timeout_seconds}")
        self._runner = runner
        self._timeout_seconds = timeout_seconds
        self._app = self._create_app()

    def _create_app(self) -> Starlette:
        routes = [
            Route("/health", self._health_endpoint, methods=["GET"]),
            Route("/", self._cleanup_endpoint, methods=["GET", "POST"]),
        ]
        return Starlette(debug=False, routes=routes)

    @property
    def app(self) -> Starlette:
        """Get the Starlette ASGI application."""
        return self._app

    async def _health_endpoint(self, request: Request) -> JSONResponse:
        """Handle GET /health."""
        return JSONResponse({"status": "healthy"})

    async def _cleanup_endpoint(self, request: Request) -> JSONResponse:
        """Handle GET|POST /: run one cleanup.

        The deadline starts when the request arrives. The run itself is
        synchronous database and blob I/O, so it executes on a worker thread.
        """
        deadline = Deadline(self._timeout_seconds)
        outcome = await run_in_threadpool(self._runner.run, deadline)
        return JSONResponse(outcome.to_dict(), status_code=outcome.http_status)


def create_app(runner: CleanupRunner, *, timeout_seconds: float) -> Starlette:
    """Create the ASGI app for a runner."""
    return CleanupServer(runner, timeout_seconds=timeout_seconds).app

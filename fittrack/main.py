"""FitTrack MCP Server - Entry point.

Serves the tracking tools over streamable HTTP, with a health route and
CORS for the companion web app. Callers authenticate against the remote
tracking API; this server only passes their bearer token along.
"""

import logging
import os

import uvicorn
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Mount, Route

from .shell.mcp_server import current_token, mcp


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CORS_ORIGINS = "http://localhost:8081"


def allowed_origins(raw: str | None = None) -> list[str]:
    """Parse a comma-separated origin list, falling back to CORS_ORIGINS."""
    if raw is None:
        raw = os.environ.get("CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def bearer_token(auth_header: str) -> str | None:
    """Token from an Authorization header, or None if absent or blank."""
    scheme, _, token = auth_header.partition(" ")
    if scheme != "Bearer":
        return None
    return token.strip() or None


async def health_check(request: Request) -> JSONResponse:
    """Liveness check for the hosting platform."""
    return JSONResponse({"status": "healthy", "service": "fittrack-mcp"})


class TokenForwardingMiddleware(BaseHTTPMiddleware):
    """Expose the caller's bearer token to tool calls on /mcp.

    Tools read it from current_token when building their API client.
    """

    async def dispatch(self, request: Request, call_next):
        if request.url.path.startswith("/mcp"):
            token = bearer_token(request.headers.get("Authorization", ""))
            if token:
                current_token.set(token)
                logger.debug("Forwarding token for MCP request")

        return await call_next(request)


def create_app() -> Starlette:
    """Build the ASGI app.

    The tool app owns the /mcp route itself, so it is mounted last at the
    root; its lifespan starts the streamable HTTP session manager.
    """
    tools_app = mcp.streamable_http_app()

    return Starlette(
        routes=[
            Route("/health", health_check, methods=["GET"]),
            Mount("/", app=tools_app),
        ],
        middleware=[
            Middleware(
                CORSMiddleware,
                allow_origins=allowed_origins(),
                allow_methods=["GET", "POST", "OPTIONS"],
                allow_headers=["*"],
            ),
            Middleware(TokenForwardingMiddleware),
        ],
        lifespan=tools_app.router.lifespan_context,
    )


app = create_app()


def main() -> None:
    """Run the server with uvicorn, bound from HOST and PORT."""
    port = int(os.environ.get("PORT", 8080))
    host = os.environ.get("HOST", "0.0.0.0")

    logger.info("Starting FitTrack MCP server on %s:%d", host, port)

    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()

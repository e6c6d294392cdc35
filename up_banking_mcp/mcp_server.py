"""
Up Banking MCP Server

Exposes Up accounts, transactions, categories and tags as MCP tools and
resources. Runs over stdio by default; --transport sse serves the same
server over HTTP for remote hosts.

Authentication:
    UP_PERSONAL_ACCESS_TOKEN is required and is sent to the Up API.
    Set MCP_AUTH_TOKEN to require Bearer token authentication on the SSE transport.
    Clients must include header: Authorization: Bearer <token>
"""
import argparse
import asyncio
import logging
import secrets
import sys
from typing import Any, Dict, Iterable, List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.lowlevel.helper_types import ReadResourceContents
from mcp.server.stdio import stdio_server
from pydantic import AnyUrl

from . import __version__
from .config import ConfigError, UpConfig, get_config, load_env_file
from .resources import MIME_TYPE, UpResources
from .tools import UpTools
from .up.client import UpClient

logger = logging.getLogger(__name__)

SERVER_NAME = "up-banking-mcp"


# ============================================================================
# Server
# ============================================================================

def create_server(client: UpClient) -> Server:
    """Build an MCP server whose handlers all share the given client."""
    server = Server(SERVER_NAME, version=__version__)
    tools = UpTools(client)
    resources = UpResources(client)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return tools.list_tools()

    # Argument validation happens in UpTools so missing fields read "<field> is required".
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> types.CallToolResult:
        return await tools.call_tool(name, arguments)

    @server.list_resources()
    async def list_resources() -> List[types.Resource]:
        return resources.list_resources()

    @server.list_resource_templates()
    async def list_resource_templates() -> List[types.ResourceTemplate]:
        return resources.list_resource_templates()

    @server.read_resource()
    async def read_resource(uri: AnyUrl) -> Iterable[ReadResourceContents]:
        text = await resources.read(str(uri))
        return [ReadResourceContents(content=text, mime_type=MIME_TYPE)]

    return server


async def run_stdio(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        logger.info("Up Banking MCP Server running on stdio")
        await server.run(read_stream, write_stream, server.create_initialization_options())


# ============================================================================
# SSE Server
# ============================================================================

def create_sse_app(server: Server, auth_token: Optional[str] = None):
    """Create the SSE application for use with uvicorn."""
    from mcp.server.sse import SseServerTransport
    from starlette.applications import Starlette
    from starlette.routing import Route, Mount
    from starlette.responses import Response, JSONResponse
    from starlette.middleware import Middleware
    from starlette.middleware.base import BaseHTTPMiddleware
    from starlette.requests import Request

    class BearerAuthMiddleware(BaseHTTPMiddleware):
        """Middleware to enforce Bearer token authentication."""

        async def dispatch(self, request: Request, call_next):
            if not auth_token:
                return await call_next(request)

            auth_header = request.headers.get("Authorization", "")
            if not auth_header.startswith("Bearer "):
                return JSONResponse(
                    {"error": "Missing or invalid Authorization header. Expected: Bearer <token>"},
                    status_code=401,
                    headers={"WWW-Authenticate": "Bearer"}
                )

            provided_token = auth_header[len("Bearer "):]
            if not secrets.compare_digest(provided_token.encode(), auth_token.encode()):
                logger.warning("Rejected SSE request with invalid token from %s", request.client)
                return JSONResponse(
                    {"error": "Invalid authentication token"},
                    status_code=401,
                    headers={"WWW-Authenticate": "Bearer"}
                )

            return await call_next(request)

    sse = SseServerTransport("/messages/")

    async def handle_sse(request):
        async with sse.connect_sse(
            request.scope, request.receive, request._send
        ) as streams:
            await server.run(
                streams[0], streams[1], server.create_initialization_options()
            )
        # Must return Response to avoid NoneType error on client disconnect
        return Response()

    return Starlette(
        routes=[
            Route("/sse", endpoint=handle_sse),
            Mount("/messages/", app=sse.handle_post_message),
        ],
        middleware=[Middleware(BearerAuthMiddleware)]
    )


# ============================================================================
# Entry point
# ============================================================================

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="MCP server for the Up Banking API."
    )
    parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport to serve on (default: stdio)"
    )
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind in SSE mode (default: 127.0.0.1)"
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port to bind in SSE mode (default: 8000)"
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help="Path to a .env file (default: search from the working directory)"
    )
    return parser.parse_args(argv)


def configure_logging(level: str) -> None:
    # stdout carries the stdio protocol stream
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def serve(config: UpConfig, transport: str, host: str, port: int) -> None:
    async with UpClient(config.personal_access_token) as client:
        server = create_server(client)
        if transport == "sse":
            import uvicorn

            app = create_sse_app(server, auth_token=config.mcp_auth_token)
            if not config.mcp_auth_token:
                logger.warning("MCP_AUTH_TOKEN is not set; the SSE transport accepts unauthenticated requests")
            uvicorn_config = uvicorn.Config(app, host=host, port=port, log_level=config.log_level.lower())
            await uvicorn.Server(uvicorn_config).serve()
        else:
            await run_stdio(server)


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    load_env_file(args.env_file)

    try:
        config = get_config()
    except ConfigError as e:
        configure_logging("INFO")
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    configure_logging(config.log_level)
    try:
        asyncio.run(serve(config, args.transport, args.host, args.port))
    except KeyboardInterrupt:
        logger.info("Shutting down")


if __name__ == "__main__":
    main()

"""
FastAPI application for pshare.

This module adapts the dispatcher to HTTP: the index page is registered at its
exact path and every other path falls through to the file route.
"""

from fastapi import FastAPI, Request, Response
from starlette.concurrency import run_in_threadpool
from urllib.parse import quote
import logging

from core.dispatcher import Dispatcher, DispatchResult
from core.registry import encode_name
from observability.metrics import metrics
from observability.tracing import record_result, request_span

# ------------------------------------------------------------------------------
# Logging
# ------------------------------------------------------------------------------
logger = logging.getLogger("pshare.api")

VERSION = "1.0.0"


# ------------------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------------------
def raw_request_path(request: Request) -> str:
    """
    Get the still percent-encoded request path, without query string.

    Falls back to re-encoding the decoded path if the server did not
    provide the raw one.
    """
    raw = request.scope.get("raw_path")
    if raw:
        return raw.decode("latin-1").split("?", 1)[0]
    return quote(request.url.path, safe="/", errors="surrogateescape")


def _to_response(result: DispatchResult) -> Response:
    # media_type stays None so Starlette does not append a charset
    return Response(content=result.body, status_code=result.status, headers=result.headers)


# ------------------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------------------
class DispatchEndpoint:
    """
    ASGI endpoint handing every request to the dispatcher.

    Starlette only restricts methods for function endpoints; a plain ASGI
    callable sees all of them, so the dispatcher decides about 405 itself.
    """

    def __init__(self, dispatcher: Dispatcher, route: str):
        self.dispatcher = dispatcher
        self.route = route
        self.index_raw_path = encode_name(dispatcher.registry.index_path)

    async def __call__(self, scope, receive, send):
        request = Request(scope, receive)
        path = raw_request_path(request)

        with metrics.request_timer(self.route), request_span(self.route, request.method, path) as span:
            result = await self.dispatch(request.method, path)
            record_result(span, result.status, len(result.body))

        client = request.client.host if request.client else "-"
        logger.info("%s %s %s -> %d", client, request.method, path, result.status)
        metrics.record_request(self.route, request.method, result.status, len(result.body))

        await _to_response(result)(scope, receive, send)

    async def dispatch(self, method: str, path: str) -> DispatchResult:
        # the router matches decoded paths; /shared%2F is not the index
        if self.route == "index" and path == self.index_raw_path:
            return self.dispatcher.serve_index(method)
        # file reads block, keep them off the event loop
        return await run_in_threadpool(self.dispatcher.serve_path, method, path)


# ------------------------------------------------------------------------------
# App
# ------------------------------------------------------------------------------
def create_app(dispatcher: Dispatcher) -> FastAPI:
    """
    Create the FastAPI application serving a registry.

    Args:
        dispatcher: Dispatcher over the registry to serve

    Returns:
        FastAPI: Application with the index and file routes only
    """
    # docs and schema routes would shadow shared files of the same name
    app = FastAPI(
        title="pshare",
        description="Pretty small HTTP file sharing server",
        version=VERSION,
        openapi_url=None,
        docs_url=None,
        redoc_url=None,
    )
    app.state.dispatcher = dispatcher

    app.add_route(dispatcher.registry.index_path, DispatchEndpoint(dispatcher, "index"), include_in_schema=False)
    app.add_route("/{path:path}", DispatchEndpoint(dispatcher, "file"), include_in_schema=False)

    logger.info("Serving %d files, index at %s", len(dispatcher.registry), dispatcher.registry.index_path)
    return app

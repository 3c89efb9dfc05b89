"""ShopStream FastAPI application.

Hosts the Identity (users) and Ordering (orders) APIs. Each request is wrapped
in the correct domain context based on URL prefix.

The user-validation transport is built once per process in the lifespan and
injected into the order orchestrator. With ``VALIDATION_TRANSPORT=inline`` the
ordering side talks to the in-process identity responder; with ``redis`` it
goes over the shared queue and ``src/server.py`` must be running.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

from contextlib import asynccontextmanager

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV controls which config overlay is applied.
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from identity.domain import identity  # noqa: E402
from identity.messaging.validation import UserValidationResponder  # noqa: E402
from ordering.domain import ordering  # noqa: E402
from ordering.order.orchestrator import OrderOrchestrator  # noqa: E402
from shared.logging import add_context, clear_context  # noqa: E402
from shared.messaging.settings import MessagingSettings, get_settings  # noqa: E402
from shared.messaging.transport import (  # noqa: E402
    InlineValidationTransport,
    RedisValidationTransport,
    ValidationTransport,
)

identity.init()
ordering.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
_ROUTE_DOMAIN_MAP = {
    "/users": identity,
    "/orders": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


def build_validation_transport(settings: MessagingSettings) -> ValidationTransport:
    if settings.validation_transport == "redis":
        return RedisValidationTransport.from_url(
            settings.redis_url,
            queue=settings.user_validation_queue,
            timeout=settings.user_validation_timeout,
        )
    return InlineValidationTransport(
        UserValidationResponder(identity),
        timeout=settings.user_validation_timeout,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    transport = build_validation_transport(settings)
    await transport.start()

    app.state.order_orchestrator = OrderOrchestrator(
        transport,
        domain=ordering,
        max_concurrency=settings.order_enrichment_concurrency,
    )
    try:
        yield
    finally:
        await transport.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="ShopStream API",
    description="E-commerce platform: Identity & Ordering domains",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    add_context(path=request.url.path, method=request.method)
    try:
        domain = _resolve_domain(request.url.path)
        if domain is not None:
            with domain.domain_context():
                return await call_next(request)
        # No domain match: health check, docs
        return await call_next(request)
    finally:
        clear_context()


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from identity.api.routes import router as identity_router  # noqa: E402
from ordering.api.routes import add_exception_handlers, order_router  # noqa: E402

app.include_router(identity_router)
app.include_router(order_router)
add_exception_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domains": {
                "identity": {"name": identity.name},
                "ordering": {"name": ordering.name},
            },
            "validation_transport": get_settings().validation_transport,
        }
    )

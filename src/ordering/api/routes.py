"""FastAPI routes for the Ordering domain."""

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ordering.api.dependencies import Requester, get_orchestrator, get_requester
from ordering.api.schemas import CreateOrderRequest, OrderResponse, UpdateOrderStatusRequest
from ordering.errors import PersistenceFailure
from ordering.order.orchestrator import OrderOrchestrator
from shared.messaging.user_validation import Role

order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderResponse)
async def create_order(
    body: CreateOrderRequest,
    requester: Requester = Depends(get_requester),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = await orchestrator.create_order(
        requester.id,
        [item.model_dump() for item in body.order_items],
    )
    return OrderResponse.from_details(order)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    requester: Requester = Depends(get_requester),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> list[OrderResponse]:
    """Administrators get every order; other users only their own."""
    orders = await orchestrator.list_orders(requester.id, requester.role)
    return [OrderResponse.from_details(order) for order in orders]


@order_router.get("/all", response_model=list[OrderResponse])
async def list_all_orders(
    requester: Requester = Depends(get_requester),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> list[OrderResponse]:
    if requester.role is not Role.ADMIN:
        raise HTTPException(status_code=403, detail="Administrator role required")

    orders = await orchestrator.list_orders(requester.id, Role.ADMIN)
    return [OrderResponse.from_details(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    requester: Requester = Depends(get_requester),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = await orchestrator.get_order(order_id, requester.id)
    return OrderResponse.from_details(order)


@order_router.patch("/{order_id}", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    body: UpdateOrderStatusRequest,
    requester: Requester = Depends(get_requester),
    orchestrator: OrderOrchestrator = Depends(get_orchestrator),
) -> OrderResponse:
    order = await orchestrator.update_order_status(order_id, requester.id, body.status)
    return OrderResponse.from_details(order)


async def _persistence_failure_handler(request: Request, exc: PersistenceFailure) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def add_exception_handlers(app: FastAPI) -> None:
    """Map order failures to HTTP responses without exposing internals."""
    register_exception_handlers(app)
    app.add_exception_handler(PersistenceFailure, _persistence_failure_handler)

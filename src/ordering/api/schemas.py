"""Pydantic request/response schemas for the Ordering API.

These are external contracts, kept separate from the Order aggregate and the
``OrderDetails`` read model.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from ordering.order.details import OrderDetails
from ordering.order.status import OrderStatus
from shared.messaging.user_validation import Role


# ---------------------------------------------------------------------------
# Request Schemas
# ---------------------------------------------------------------------------
MAX_ITEM_QUANTITY = 1_000_000
MAX_ITEM_PRICE = 1_000_000_000.0


class OrderItemSchema(BaseModel):
    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1, le=MAX_ITEM_QUANTITY)
    price: float = Field(ge=0, le=MAX_ITEM_PRICE, allow_inf_nan=False)


class CreateOrderRequest(BaseModel):
    """Items to order. Any total sent by the client is ignored."""

    order_items: list[OrderItemSchema]

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "order_items": [
                        {"product_id": "prod-001", "quantity": 2, "price": 29.99},
                    ]
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: OrderStatus

    model_config = {"json_schema_extra": {"examples": [{"status": "IN_PROCESS"}]}}


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class UserProfileSchema(BaseModel):
    id: str
    email: str
    name: str
    role: Role


class OrderItemResponse(BaseModel):
    id: str
    product_id: str
    quantity: int
    price: float
    created_at: datetime | None = None


class OrderResponse(BaseModel):
    id: str
    user_id: str
    status: OrderStatus
    total_amount: float
    order_items: list[OrderItemResponse]
    user: UserProfileSchema | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_details(cls, details: OrderDetails) -> "OrderResponse":
        return cls(
            id=details.id,
            user_id=details.user_id,
            status=details.status,
            total_amount=float(details.total_amount),
            order_items=[
                OrderItemResponse(
                    id=item.id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    price=item.price,
                    created_at=item.created_at,
                )
                for item in details.items
            ],
            user=details.user.model_dump() if details.user else None,
            created_at=details.created_at,
            updated_at=details.updated_at,
        )

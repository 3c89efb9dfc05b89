"""Read models handed back by the order use cases."""

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from ordering.order.order import Order
from ordering.order.status import OrderStatus
from shared.messaging.user_validation import UserSnapshot


@dataclass(frozen=True)
class OrderLine:
    id: str
    product_id: str
    quantity: int
    price: float
    created_at: datetime | None


@dataclass(frozen=True)
class OrderDetails:
    """An order detached from its repository, optionally with its owner's profile.

    Built while the domain context is active so that line items are loaded;
    enrichment with ``user`` can then happen anywhere.
    """

    id: str
    user_id: str
    status: OrderStatus
    total_amount: Decimal
    items: tuple[OrderLine, ...]
    created_at: datetime | None
    updated_at: datetime | None
    user: UserSnapshot | None = None

    @classmethod
    def from_order(cls, order: Order) -> "OrderDetails":
        return cls(
            id=str(order.id),
            user_id=str(order.user_id),
            status=OrderStatus(order.status),
            total_amount=Decimal(str(order.total_amount)).quantize(Decimal("0.01")),
            items=tuple(
                OrderLine(
                    id=str(item.id),
                    product_id=str(item.product_id),
                    quantity=item.quantity,
                    price=item.price,
                    created_at=item.created_at,
                )
                for item in order.items
            ),
            created_at=order.created_at,
            updated_at=order.updated_at,
        )

    def with_user(self, user: UserSnapshot) -> "OrderDetails":
        return replace(self, user=user)

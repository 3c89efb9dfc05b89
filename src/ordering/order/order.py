"""Order aggregate and its line items.

An order belongs to one user, carries the items it was placed with and a total
computed on the server from those items. After placement the only thing that
changes is its status, and only along the transitions in
``ordering.order.status``.
"""

from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, HasMany, Identifier, Integer, String

from ordering.domain import ordering
from ordering.errors import InvalidTransition
from ordering.order.events import OrderPlaced, OrderStatusChanged
from ordering.order.status import ORDER_TRANSITIONS, OrderStatus

_CENT = Decimal("0.01")


def calculate_total(items: Iterable[Mapping]) -> Decimal:
    """Sum of price × quantity over ``items``, rounded half-up to cents.

    Prices go through ``str`` so that binary float noise (29.99 stored as
    29.989999...) does not leak into the total. Totals that are not finite or
    do not fit the decimal context raise ``ValidationError``.
    """
    try:
        total = sum(
            (Decimal(str(item["price"])) * int(item["quantity"]) for item in items),
            Decimal("0"),
        ).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValidationError({"order_items": ["Order total is out of range"]}) from exc

    if not total.is_finite():
        raise ValidationError({"order_items": ["Order total is out of range"]})
    return total


@ordering.entity(part_of="Order")
class OrderItem:
    """A product and quantity at the unit price the order was placed with.

    Items are never edited after the order is placed. Product IDs are opaque
    references; they are not checked against a catalogue.
    """

    product_id = Identifier(required=True)
    quantity = Integer(required=True, min_value=1)
    price = Float(required=True, min_value=0.0)
    created_at = DateTime()


@ordering.aggregate
class Order:
    user_id = Identifier(required=True)
    status = String(
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    total_amount = Float(required=True, min_value=0.0)
    items = HasMany(OrderItem)
    created_at = DateTime()
    updated_at = DateTime()

    @classmethod
    def place(cls, user_id, items_data, total_amount):
        """Create a PENDING order for ``user_id``.

        Args:
            user_id: The validated owner of the order.
            items_data: List of dicts with product_id, quantity, price.
            total_amount: Server-side total, see ``calculate_total``.
        """
        now = datetime.now(UTC)

        order = cls(
            user_id=str(user_id),
            status=OrderStatus.PENDING.value,
            total_amount=float(total_amount),
            items=[
                OrderItem(
                    product_id=str(item["product_id"]),
                    quantity=item["quantity"],
                    price=float(item["price"]),
                    created_at=now,
                )
                for item in items_data
            ],
            created_at=now,
            updated_at=now,
        )
        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                user_id=str(user_id),
                item_count=len(order.items),
                total_amount=order.total_amount,
                placed_at=now,
            )
        )
        return order

    def change_status(self, new_status: OrderStatus):
        """Move to ``new_status``. Who may ask is decided by the caller."""
        current = OrderStatus(self.status)
        if new_status not in ORDER_TRANSITIONS[current]:
            raise InvalidTransition(current, new_status, f"Cannot transition from {current.value} to {new_status.value}")

        now = datetime.now(UTC)
        self.status = new_status.value
        self.updated_at = now

        self.raise_(
            OrderStatusChanged(
                order_id=str(self.id),
                previous_status=current.value,
                new_status=new_status.value,
                changed_at=now,
            )
        )

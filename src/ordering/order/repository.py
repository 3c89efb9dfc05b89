"""Repository for the Order aggregate.

These are the only persistence operations the order use cases need.
Status updates are last-write-wins; there is no optimistic locking.
"""

from protean.exceptions import ObjectNotFoundError

from ordering.domain import ordering
from ordering.order.order import Order
from ordering.order.status import OrderStatus


@ordering.repository(part_of=Order)
class OrderRepository:
    def create(self, user_id, items, total_amount) -> Order:
        """Persist a new PENDING order."""
        order = Order.place(user_id, items, total_amount)
        self.add(order)
        return order

    def find_by_user_id(self, user_id) -> list[Order]:
        """Orders owned by ``user_id``, newest first."""
        return self._dao.query.filter(user_id=str(user_id)).order_by("-created_at").all().items

    def find_all(self) -> list[Order]:
        """Every order, newest first."""
        return self._dao.query.order_by("-created_at").all().items

    def find_by_id(self, order_id) -> Order | None:
        try:
            return self.get(order_id)
        except ObjectNotFoundError:
            return None

    def find_by_id_and_user_id(self, order_id, user_id) -> Order | None:
        """The order, but only if ``user_id`` owns it."""
        order = self.find_by_id(order_id)
        if order is None or str(order.user_id) != str(user_id):
            return None
        return order

    def update_status(self, order_id, status: OrderStatus) -> Order:
        order = self.get(order_id)
        order.change_status(status)
        self.add(order)
        return order

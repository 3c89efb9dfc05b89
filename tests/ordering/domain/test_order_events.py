"""Tests for Order domain events."""

from datetime import datetime

from ordering.order.events import OrderPlaced, OrderStatusChanged
from protean.utils import DomainObjects


class TestOrderPlaced:
    def test_element_type(self):
        assert OrderPlaced.element_type == DomainObjects.EVENT

    def test_construction(self):
        now = datetime.now()
        event = OrderPlaced(
            order_id="ord-001",
            user_id="user-001",
            item_count=2,
            total_amount=46.0,
            placed_at=now,
        )
        assert event.order_id == "ord-001"
        assert event.user_id == "user-001"
        assert event.item_count == 2
        assert event.total_amount == 46.0
        assert event.placed_at == now

    def test_version(self):
        assert OrderPlaced.__version__ == "v1"


class TestOrderStatusChanged:
    def test_element_type(self):
        assert OrderStatusChanged.element_type == DomainObjects.EVENT

    def test_construction(self):
        now = datetime.now()
        event = OrderStatusChanged(
            order_id="ord-001",
            previous_status="PENDING",
            new_status="IN_PROCESS",
            changed_at=now,
        )
        assert event.previous_status == "PENDING"
        assert event.new_status == "IN_PROCESS"
        assert event.changed_at == now

    def test_version(self):
        assert OrderStatusChanged.__version__ == "v1"

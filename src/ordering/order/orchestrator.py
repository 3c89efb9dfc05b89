"""Order use cases: place, list, read and move orders through their lifecycle.

Users live in the Identity service. Every use case first asks it, through the
injected ``ValidationTransport``, whether the requester exists; the answer
also carries the role that gates status changes and the profile that is
attached to the orders returned.
"""

import asyncio
from collections.abc import Iterable, Iterator, Mapping
from contextlib import contextmanager
from typing import assert_never

import structlog
from protean.domain import Domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.domain import ordering
from ordering.errors import InvalidTransition, OrderNotFound, PersistenceFailure, UserValidationFailed
from ordering.order.details import OrderDetails
from ordering.order.order import Order, calculate_total
from ordering.order.repository import OrderRepository
from ordering.order.status import OrderStatus, require_transition
from shared.messaging.transport import ValidationTransport
from shared.messaging.user_validation import Role, UserSnapshot

logger = structlog.get_logger(__name__)

DEFAULT_ENRICHMENT_CONCURRENCY = 8


class OrderOrchestrator:
    """Coordinates user validation, the status machine and the order repository.

    Repository calls run inside short, synchronous ``domain_context`` blocks so
    that concurrent requests sharing the event loop never see each other's
    context. Unexpected store faults become ``PersistenceFailure``.
    """

    def __init__(
        self,
        transport: ValidationTransport,
        domain: Domain | None = None,
        max_concurrency: int = DEFAULT_ENRICHMENT_CONCURRENCY,
    ) -> None:
        self._transport = transport
        self._domain = domain or ordering
        self._max_concurrency = max_concurrency

    @contextmanager
    def _orders(self, operation: str) -> Iterator[OrderRepository]:
        try:
            with self._domain.domain_context():
                yield self._domain.repository_for(Order)
        except (ValidationError, ObjectNotFoundError):
            raise
        except Exception as exc:
            logger.exception("Order persistence failed", operation=operation)
            raise PersistenceFailure(operation) from exc

    async def _validate(self, user_id: str) -> UserSnapshot:
        response = await self._transport.request_validation(user_id)
        if not response.is_valid or response.user is None:
            logger.warning("User validation failed", user_id=user_id, error=response.error)
            raise UserValidationFailed(user_id, response.error)
        return response.user

    async def _profile_of(self, user_id: str) -> UserSnapshot:
        """Best-effort profile lookup: a placeholder stands in for users that fail validation."""
        response = await self._transport.request_validation(user_id)
        if response.is_valid and response.user is not None:
            return response.user

        logger.warning("Could not enrich order owner", user_id=user_id, error=response.error)
        return UserSnapshot.placeholder(user_id)

    async def _enrich(self, orders: list[OrderDetails]) -> list[OrderDetails]:
        """Attach owner profiles, one validation call per distinct owner, in parallel."""
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def lookup(user_id: str) -> tuple[str, UserSnapshot]:
            async with semaphore:
                return user_id, await self._profile_of(user_id)

        owner_ids = dict.fromkeys(order.user_id for order in orders)
        profiles = dict(await asyncio.gather(*(lookup(user_id) for user_id in owner_ids)))
        return [order.with_user(profiles[order.user_id]) for order in orders]

    def _find_visible(self, orders: OrderRepository, order_id: str, requester: UserSnapshot) -> Order:
        """Administrators see every order; anyone else only their own.

        A foreign order is reported as missing so its existence is not revealed.
        """
        if requester.role is Role.ADMIN:
            order = orders.find_by_id(order_id)
        elif requester.role is Role.USER:
            order = orders.find_by_id_and_user_id(order_id, requester.id)
        else:
            assert_never(requester.role)

        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def _with_owner(self, details: OrderDetails, requester: UserSnapshot) -> OrderDetails:
        if details.user_id == requester.id:
            return details.with_user(requester)
        return details.with_user(await self._profile_of(details.user_id))

    async def create_order(self, user_id: str, items: Iterable[Mapping]) -> OrderDetails:
        """Place a PENDING order for ``user_id``.

        The total is always recomputed from the items; a total supplied by the
        client is never used. Nothing is persisted if the user is not valid.
        """
        logger.info("Creating order", user_id=user_id)

        user = await self._validate(user_id)
        items = list(items)
        total_amount = calculate_total(items)

        with self._orders("creation") as orders:
            details = OrderDetails.from_order(orders.create(user.id, items, total_amount))

        logger.info("Order created", order_id=details.id, user_id=user.id, total_amount=str(total_amount))
        return details.with_user(user)

    async def list_orders(self, requester_id: str, role: Role) -> list[OrderDetails]:
        """Administrators get every order; other users get their own."""
        logger.info("Listing orders", requester_id=requester_id, role=role.value)

        if role is Role.ADMIN:
            with self._orders("listing") as orders:
                found = [OrderDetails.from_order(order) for order in orders.find_all()]
            return await self._enrich(found)
        elif role is Role.USER:
            requester = await self._validate(requester_id)
            with self._orders("listing") as orders:
                found = [OrderDetails.from_order(order) for order in orders.find_by_user_id(requester.id)]
            return [order.with_user(requester) for order in found]
        else:
            assert_never(role)

    async def get_order(self, order_id: str, requester_id: str) -> OrderDetails:
        requester = await self._validate(requester_id)

        with self._orders("lookup") as orders:
            details = OrderDetails.from_order(self._find_visible(orders, order_id, requester))

        return await self._with_owner(details, requester)

    async def update_order_status(
        self, order_id: str, requester_id: str, requested_status: OrderStatus
    ) -> OrderDetails:
        """Move an order to ``requested_status`` on behalf of ``requester_id``.

        The returned order carries its owner's profile, which is not the
        requester's when an administrator updates someone else's order.
        """
        requested_status = OrderStatus(requested_status)
        logger.info(
            "Updating order status",
            order_id=order_id,
            requester_id=requester_id,
            requested_status=requested_status.value,
        )

        requester = await self._validate(requester_id)

        with self._orders("status update") as orders:
            order = self._find_visible(orders, order_id, requester)

            try:
                require_transition(OrderStatus(order.status), requested_status, requester.role)
            except InvalidTransition as exc:
                logger.warning(
                    "Order status transition refused",
                    order_id=order_id,
                    reason=exc.reason.value if exc.reason else None,
                    current_status=exc.current.value,
                    requested_status=requested_status.value,
                )
                raise

            details = OrderDetails.from_order(orders.update_status(order_id, requested_status))

        logger.info("Order status updated", order_id=order_id, status=details.status.value)
        return await self._with_owner(details, requester)

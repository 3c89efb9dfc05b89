"""Ordering bounded context: orders, line items and their status lifecycle.

Users are owned by the Identity service; ordering validates them over the
message queue (see ``ordering.order.orchestrator``).
"""

import structlog
from protean.domain import Domain

from shared.logging import configure_logging

configure_logging()

ordering = Domain(name="ordering")

logger = structlog.get_logger(__name__)

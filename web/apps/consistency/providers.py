"""Service provider helpers for wiring the orchestrator with its stores.

``get_orchestrator`` returns a ``ConsistencyOrchestrator`` backed by the
Django ORM repositories. Views resolve it through this module at call time
so tests can swap in an orchestrator built on the in-memory stores.
"""

from apps.catalog.domain import CandleService
from apps.catalog.repository import CandleRepository
from apps.orders.domain import OrderService
from apps.orders.repository import OrderRepository

from .orchestrator import ConsistencyOrchestrator


def get_orchestrator() -> ConsistencyOrchestrator:
    """Return an orchestrator wired to the ORM repositories.

    Returns:
        ConsistencyOrchestrator: A fresh instance; it holds no state between
        requests.
    """
    return ConsistencyOrchestrator(
        candles=CandleService(CandleRepository()),
        orders=OrderService(OrderRepository()),
    )

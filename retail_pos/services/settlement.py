"""
Step bookkeeping shared by the settlement services.

Settlements run as a fixed sequence of store calls with no compensation.
When a step raises a PosError, the error is logged with the steps already
committed and re-raised carrying the same information, so the leftover rows
can be reconciled by hand.
"""
import logging
from contextlib import contextmanager, nullcontext

from retail_pos.blueprints.metrics import settlements_total, record_settlement_failure
from retail_pos.exceptions import PosError

logger = logging.getLogger(__name__)


class SettlementTrail:
    """Records completed steps of one settlement."""

    def __init__(self, operation: str, tag: str, atomic: bool = False):
        self.operation = operation
        self.tag = tag
        self.atomic = atomic
        self.completed = []

    @contextmanager
    def step(self, name: str):
        try:
            yield
        except PosError as e:
            e.at_step(name, self.completed)
            if self.atomic:
                outcome = f"Steps rolled back: {self.completed or 'none'}"
            else:
                outcome = f"Committed steps left in place: {self.completed or 'none'}"
            logger.error(f"[{self.tag}] Step '{name}' failed: {e.message}. {outcome}")
            record_settlement_failure(self.operation, name)
            raise
        self.completed.append(name)

    def succeeded(self):
        settlements_total.labels(operation=self.operation).inc()


def unit_of_work(store, atomic: bool):
    """store.transaction() when atomic, otherwise a no-op scope."""
    return store.transaction() if atomic else nullcontext(store)


def invalidate_reports():
    """Drop cached dashboard figures after a stock or money movement."""
    from retail_pos.services.cache_service import get_cache
    try:
        get_cache().invalidate_module('dashboard')
    except RuntimeError as e:
        logger.debug(f"[CACHE] Skip invalidation: {e}")

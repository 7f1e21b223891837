"""
Sale cancellation and refund numbering.

Cancellation is one-way: completed -> cancelled. Refund numbers come from
a database sequence when there is one; otherwise they are computed as
max(refund_number) + 1, which two concurrent cancellations can compute
twice. The unique constraint on sale.refund_number then fails the second
write with a StoreError. allocate_refund_number is the only place that
knows about this.
"""
import logging
from datetime import datetime, timezone

from retail_pos.exceptions import (
    NotFoundError, AlreadyCancelledError, ValidationError, StoreError
)
from retail_pos.models import SaleStatus, CancellationReason
from retail_pos.services.inventory_service import adjust_stock
from retail_pos.services.settlement import SettlementTrail, unit_of_work, invalidate_reports

logger = logging.getLogger(__name__)

DEFAULT_REFUND_SEQUENCE = 'refund_number_seq'


def allocate_refund_number(store, sequence_name: str = DEFAULT_REFUND_SEQUENCE) -> int:
    """Next refund number: sequence first, max + 1 fallback."""
    try:
        return store.next_sequence(sequence_name)
    except StoreError as e:
        logger.warning(f"[CANCEL] Sequence '{sequence_name}' unavailable ({e.message}), using max+1")

    last = store.find_one('sale', order_by='-refund_number', refund_number__isnull=False)
    return (last.refund_number if last else 0) + 1


def _parse_reason(reason) -> CancellationReason:
    if isinstance(reason, CancellationReason):
        return reason
    if not reason:
        raise ValidationError("Seleziona un motivo di annullamento")
    try:
        return CancellationReason(reason)
    except ValueError:
        raise ValidationError("Motivo di annullamento non valido", payload={'reason': reason})


def cancel_sale(sale_id, reason, notes, issue_refund: bool, store,
                refund_sequence: str = DEFAULT_REFUND_SEQUENCE,
                atomic: bool = False, guarded_stock: bool = False):
    """
    Cancel a completed sale and put its goods back in stock.

    Raises:
        NotFoundError: Unknown sale
        AlreadyCancelledError: Sale already cancelled
        ValidationError: Missing or unknown reason
        StoreError: A step failed; .step and .completed_steps say where
    """
    sale = store.find_by_id('sale', sale_id)
    if sale is None:
        raise NotFoundError("Vendita non trovata", payload={'sale_id': sale_id})
    if sale.status == SaleStatus.CANCELLED:
        raise AlreadyCancelledError(sale.sale_number)
    reason = _parse_reason(reason)

    trail = SettlementTrail('cancel', 'CANCEL', atomic=atomic)
    with unit_of_work(store, atomic):
        refund_number = None
        if issue_refund:
            with trail.step('refund_number'):
                refund_number = allocate_refund_number(store, refund_sequence)

        with trail.step('sale'):
            sale = store.update('sale', sale.id, {
                'status': SaleStatus.CANCELLED,
                'cancelled_at': datetime.now(timezone.utc),
                'cancellation_reason': reason,
                'cancellation_notes': notes or None,
                'refund_issued': bool(issue_refund),
                'refund_number': refund_number,
            })

        for item in list(sale.items):
            if item.product_id is None:
                logger.info(f"[CANCEL] Item '{item.product_name}' has no product anymore, stock not restored")
                continue
            with trail.step(f'stock:{item.product_id}'):
                adjust_stock(
                    store, item.product_id, item.quantity,
                    guarded=guarded_stock, product_name=item.product_name,
                )

    trail.succeeded()
    logger.info(
        f"[CANCEL] Sale #{sale.sale_number} cancelled ({reason.value})"
        + (f", refund {sale.refund_document_number}" if refund_number else "")
    )
    invalidate_reports()
    return sale

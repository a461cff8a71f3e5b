"""
Order state store: the single paid transition this service may trigger.

Contract for ``mark_paid(order_id, payment_id, gateway)``:
- atomic, and idempotent for a repeated (order_id, payment_id) pair
- rejects an order that is missing, failed, or paid by another payment
- rejects a payment id already consumed by a different order
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from supabase import Client

from paygate.logging_config import get_logger
from paygate.models import Order, OrderPaymentStatus

logger = get_logger(__name__)

MARK_PAID_RPC = "update_order_payment_status"


@dataclass(frozen=True)
class MarkPaidResult:
    success: bool
    already_paid: bool = False
    error: Optional[str] = None

    @classmethod
    def rejected(cls, error: str) -> "MarkPaidResult":
        return cls(success=False, error=error)


class OrderStateStore(Protocol):
    def mark_paid(self, order_id: str, payment_id: str, gateway: str) -> MarkPaidResult:
        ...


class SupabaseOrderStore:
    """Delegates the transition to the update_order_payment_status procedure."""

    def __init__(self, client_factory: Callable[[], Client]):
        self._client_factory = client_factory

    def mark_paid(self, order_id: str, payment_id: str, gateway: str) -> MarkPaidResult:
        response = self._client_factory().rpc(
            MARK_PAID_RPC,
            {"p_order_id": order_id, "p_payment_id": payment_id, "p_gateway": gateway},
        ).execute()

        data = response.data if response is not None else None
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict) or not data.get("success"):
            error = data.get("error") if isinstance(data, dict) else None
            return MarkPaidResult.rejected(error or "Failed to update order")
        return MarkPaidResult(success=True, already_paid=bool(data.get("already_paid")))


class DatabaseOrderStore:
    """SQLAlchemy implementation; the order row is locked for the transition."""

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def mark_paid(self, order_id: str, payment_id: str, gateway: str) -> MarkPaidResult:
        db = self._session_factory()
        try:
            result = self._transition(db, order_id, payment_id, gateway)
            if result.success and not result.already_paid:
                db.commit()
            else:
                db.rollback()
            return result
        except IntegrityError:
            # Concurrent transition consumed the payment id first
            db.rollback()
            return MarkPaidResult.rejected("Payment already applied to another order")
        finally:
            db.close()

    def _transition(self, db: Session, order_id: str, payment_id: str, gateway: str) -> MarkPaidResult:
        order = db.get(Order, order_id, with_for_update=True)
        if order is None:
            return MarkPaidResult.rejected("Order not found")

        if order.payment_status == OrderPaymentStatus.PAID:
            if order.payment_id == payment_id:
                logger.info("order_already_paid", order_id=order_id, payment_id=payment_id)
                return MarkPaidResult(success=True, already_paid=True)
            return MarkPaidResult.rejected("Order already paid with a different payment")

        if order.payment_status == OrderPaymentStatus.FAILED:
            return MarkPaidResult.rejected("Order payment already failed")

        if order.payment_id and order.payment_id != payment_id:
            return MarkPaidResult.rejected("Payment does not match the pending payment for this order")

        other = (
            db.query(Order)
            .filter(Order.payment_id == payment_id, Order.id != order_id)
            .first()
        )
        if other is not None:
            logger.warning(
                "payment_replay_rejected",
                order_id=order_id,
                payment_id=payment_id,
                consumed_by=other.id,
            )
            return MarkPaidResult.rejected("Payment already applied to another order")

        order.payment_status = OrderPaymentStatus.PAID
        order.payment_id = payment_id
        order.payment_gateway = gateway
        order.paid_at = datetime.now(timezone.utc)
        db.flush()
        logger.info("order_marked_paid", order_id=order_id, payment_id=payment_id, gateway=gateway)
        return MarkPaidResult(success=True)

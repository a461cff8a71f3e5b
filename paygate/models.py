"""
SQLAlchemy model for the order payment state observed by this service.

Only the columns the paid transition touches are mapped; catalog, cart and
shipping data belong to the storefront.
"""

from sqlalchemy import Column, String, DateTime, func
from .db import Base


class OrderPaymentStatus:
    CREATED = "created"
    AWAITING_PAYMENT = "awaiting_payment"
    PAID = "paid"
    FAILED = "failed"


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    payment_status = Column(String(32), nullable=False, default=OrderPaymentStatus.CREATED)

    # A payment id can settle exactly one order
    payment_id = Column(String(128), unique=True, nullable=True, index=True)
    payment_gateway = Column(String(32), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

"""Order read access for the booking workflow."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from booking_api.db.models import LineItem, Order, ProductVariant
from booking_api.services.errors import OrderNotFoundError


def get_order(db: Session, order_id: UUID, with_items: bool = True) -> Order:
    """
    Get an order, eagerly loading items with their variant and product.

    Raises ``OrderNotFoundError`` if absent.
    """
    query = select(Order).where(Order.id == order_id)
    if with_items:
        query = query.options(
            selectinload(Order.items)
            .selectinload(LineItem.variant)
            .selectinload(ProductVariant.product)
        )
    order = db.execute(query).scalar_one_or_none()
    if not order:
        raise OrderNotFoundError(f"Order {order_id} was not found")
    return order


def lock_order(db: Session, order_id: UUID) -> None:
    """Take a row lock on the order for the rest of the transaction."""
    locked = db.execute(
        select(Order.id).where(Order.id == order_id).with_for_update()
    ).scalar_one_or_none()
    if locked is None:
        raise OrderNotFoundError(f"Order {order_id} was not found")

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Header, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.db import get_db
from core.logging import get_logger
from models.order import Order
from models.order_item import OrderItem
from routes._crud import apply_updates, get_or_404
from schemas.order import OrderCreate, OrderItemOut, OrderOut
from security.admin import require_admin

router = APIRouter(prefix="/orders", tags=["orders"])
logger = get_logger(__name__)


def _find_by_idempotency_key(db: Session, key: str) -> Optional[Order]:
    return db.query(Order).filter(Order.idempotency_key == key).one_or_none()


@router.get("", response_model=List[OrderOut])
def list_orders(db: Session = Depends(get_db)):
    return db.query(Order).order_by(Order.created_at.desc()).all()


@router.get("/{order_id}/items", response_model=List[OrderItemOut])
def list_order_items(order_id: str, db: Session = Depends(get_db)):
    return db.query(OrderItem).filter(OrderItem.order_id == order_id).all()


@router.post("", response_model=OrderOut)
def create_order(
    data: OrderCreate,
    idempotency_key: Optional[str] = Header(default=None, alias="X-Idempotency-Key"),
    db: Session = Depends(get_db),
):
    if not data.items:
        raise HTTPException(status_code=400, detail="Order must contain items")

    if idempotency_key:
        existing = _find_by_idempotency_key(db, idempotency_key)
        if existing:
            logger.info("Replayed order %s for idempotency key %s", existing.id, idempotency_key)
            return existing

    # Header and items are committed together or not at all
    order = Order(**data.order.model_dump(), status="pending", idempotency_key=idempotency_key or None)
    db.add(order)
    db.flush()
    db.add_all(OrderItem(order_id=order.id, **item.model_dump()) for item in data.items)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        if idempotency_key:
            # Lost a race against a concurrent request carrying the same key
            existing = _find_by_idempotency_key(db, idempotency_key)
            if existing:
                return existing
        raise HTTPException(status_code=400, detail=f"Integrity error: {exc.orig}") from exc

    db.refresh(order)
    logger.info("Created order %s with %s items", order.id, len(data.items))
    return order


@router.put("/{order_id}", response_model=OrderOut, dependencies=[Depends(require_admin)])
def update_order(order_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    order = get_or_404(db, Order, order_id, "Order")
    apply_updates(order, {k: v for k, v in data.items() if k != "idempotency_key"})
    db.commit()
    db.refresh(order)
    return order


@router.delete("/{order_id}", dependencies=[Depends(require_admin)])
def delete_order(order_id: str, db: Session = Depends(get_db)):
    order = get_or_404(db, Order, order_id, "Order")
    db.delete(order)
    db.commit()
    return {"success": True}

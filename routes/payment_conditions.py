from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models.payment_condition import PaymentCondition
from routes._crud import apply_updates, get_or_404
from schemas.payment_condition import PaymentConditionCreate, PaymentConditionOut
from security.admin import require_admin

router = APIRouter(prefix="/payment-conditions", tags=["payment-conditions"])


@router.get("", response_model=List[PaymentConditionOut])
def list_payment_conditions(db: Session = Depends(get_db)):
    return db.query(PaymentCondition).order_by(PaymentCondition.sort_order.asc()).all()


@router.post("", response_model=PaymentConditionOut, dependencies=[Depends(require_admin)])
def create_payment_condition(data: PaymentConditionCreate, db: Session = Depends(get_db)):
    condition = PaymentCondition(name=data.name.strip(), sort_order=data.sort_order, active=data.active)
    db.add(condition)
    db.commit()
    db.refresh(condition)
    return condition


@router.put("/{condition_id}", response_model=PaymentConditionOut, dependencies=[Depends(require_admin)])
def update_payment_condition(condition_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    condition = get_or_404(db, PaymentCondition, condition_id, "Payment condition")
    apply_updates(condition, data)
    db.commit()
    db.refresh(condition)
    return condition


@router.delete("/{condition_id}", dependencies=[Depends(require_admin)])
def delete_payment_condition(condition_id: str, db: Session = Depends(get_db)):
    condition = get_or_404(db, PaymentCondition, condition_id, "Payment condition")
    db.delete(condition)
    db.commit()
    return {"success": True}

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.db import get_db
from models.seller import Seller
from routes._crud import apply_updates, get_or_404
from schemas.seller import SellerCreate, SellerOut
from security.admin import require_admin

router = APIRouter(prefix="/sellers", tags=["sellers"])


@router.get("", response_model=List[SellerOut])
def list_sellers(db: Session = Depends(get_db)):
    return db.query(Seller).order_by(Seller.name).all()


@router.get("/slug/{slug:path}", response_model=Optional[SellerOut])
def get_seller_by_slug(slug: str, db: Session = Depends(get_db)):
    return db.query(Seller).filter(Seller.slug == slug, Seller.active.is_(True)).first()


@router.post("", response_model=SellerOut, dependencies=[Depends(require_admin)])
def create_seller(data: SellerCreate, db: Session = Depends(get_db)):
    existing = db.query(Seller).filter(Seller.slug == data.slug).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists")

    seller = Seller(name=data.name.strip(), slug=data.slug, whatsapp=data.whatsapp or None, active=data.active)
    db.add(seller)
    db.commit()
    db.refresh(seller)
    return seller


@router.put("/{seller_id}", response_model=SellerOut, dependencies=[Depends(require_admin)])
def update_seller(seller_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    seller = get_or_404(db, Seller, seller_id, "Seller")
    apply_updates(seller, data)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="Slug already exists") from exc
    db.refresh(seller)
    return seller


@router.delete("/{seller_id}", dependencies=[Depends(require_admin)])
def delete_seller(seller_id: str, db: Session = Depends(get_db)):
    seller = get_or_404(db, Seller, seller_id, "Seller")
    db.delete(seller)
    db.commit()
    return {"success": True}

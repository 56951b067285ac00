from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models.banner import Banner
from routes._crud import apply_updates, get_or_404
from schemas.banner import BannerCreate, BannerOut
from security.admin import require_admin

router = APIRouter(prefix="/banners", tags=["banners"])


@router.get("", response_model=List[BannerOut])
def list_banners(db: Session = Depends(get_db)):
    return db.query(Banner).order_by(Banner.sort_order.asc()).all()


@router.post("", response_model=BannerOut, dependencies=[Depends(require_admin)])
def create_banner(data: BannerCreate, db: Session = Depends(get_db)):
    banner = Banner(image_url=data.image_url, link=data.link or None, sort_order=data.sort_order, active=data.active)
    db.add(banner)
    db.commit()
    db.refresh(banner)
    return banner


@router.put("/{banner_id}", response_model=BannerOut, dependencies=[Depends(require_admin)])
def update_banner(banner_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    banner = get_or_404(db, Banner, banner_id, "Banner")
    apply_updates(banner, data)
    db.commit()
    db.refresh(banner)
    return banner


@router.delete("/{banner_id}", dependencies=[Depends(require_admin)])
def delete_banner(banner_id: str, db: Session = Depends(get_db)):
    banner = get_or_404(db, Banner, banner_id, "Banner")
    db.delete(banner)
    db.commit()
    return {"success": True}

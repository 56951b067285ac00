from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.db import get_db
from core.logging import get_logger
from models.product import Product
from routes._crud import READ_ONLY_FIELDS, apply_updates, get_or_404
from schemas.product import ProductCodeOut, ProductCreate, ProductOut
from security.admin import require_admin
from services.product_rows import normalize_product_row, normalize_product_rows, resolve_image_url

router = APIRouter(prefix="/products", tags=["products"])
logger = get_logger(__name__)


def _ensure_slug_free(db: Session, slug: str, exclude_id: Optional[str] = None) -> None:
    qs = db.query(Product).filter(Product.slug == slug, Product.active.is_(True))
    if exclude_id:
        qs = qs.filter(Product.id != exclude_id)
    if qs.first():
        raise HTTPException(status_code=400, detail="Slug already exists")


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail=f"Integrity error: {exc.orig}") from exc


@router.get("", response_model=List[ProductOut])
def list_products(db: Session = Depends(get_db)):
    return db.query(Product).order_by(Product.created_at.desc()).all()


@router.get("/slug/{slug:path}", response_model=Optional[ProductOut])
def get_product_by_slug(slug: str, db: Session = Depends(get_db)):
    return db.query(Product).filter(Product.slug == slug, Product.active.is_(True)).first()


@router.get("/code/{code:path}", response_model=List[ProductCodeOut])
def get_product_by_code(code: str, db: Session = Depends(get_db)):
    return db.query(Product).filter(Product.code == code).limit(1).all()


@router.post("", response_model=ProductOut, dependencies=[Depends(require_admin)])
def create_product(data: ProductCreate, db: Session = Depends(get_db)):
    fields = normalize_product_row(data.model_dump())
    if fields["active"]:
        _ensure_slug_free(db, fields["slug"])

    product = Product(**fields)
    db.add(product)
    _commit(db)
    db.refresh(product)
    return product


@router.post("/upsert", dependencies=[Depends(require_admin)])
def upsert_products(payload: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    rows = payload.get("products")
    if not isinstance(rows, list):
        raise HTTPException(status_code=400, detail="products array required")
    try:
        normalized = normalize_product_rows(rows)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    columns = set(Product.__table__.columns.keys()) - READ_ONLY_FIELDS
    codes = [row["code"] for row in normalized]
    existing = {p.code: p for p in db.query(Product).filter(Product.code.in_(codes)).all()}

    created = updated = 0
    for row in normalized:
        fields = {k: v for k, v in row.items() if k in columns}
        product = existing.get(fields["code"])
        if product is None:
            product = Product(**fields)
            db.add(product)
            existing[product.code] = product
            created += 1
            continue

        image_url = resolve_image_url(fields.pop("image_url", None), product.image_url)
        for key, value in fields.items():
            setattr(product, key, value)
        product.image_url = image_url
        updated += 1

    _commit(db)
    logger.info("Upserted products: created=%s updated=%s", created, updated)
    return {"success": True, "created": created, "updated": updated}


@router.put("/{product_id}", response_model=ProductOut, dependencies=[Depends(require_admin)])
def update_product(product_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    product = get_or_404(db, Product, product_id, "Product")
    apply_updates(product, data)
    if product.active and ("slug" in data or "active" in data):
        _ensure_slug_free(db, product.slug, exclude_id=product.id)
    _commit(db)
    db.refresh(product)
    return product


@router.delete("/{product_id}", dependencies=[Depends(require_admin)])
def delete_product(product_id: str, db: Session = Depends(get_db)):
    product = get_or_404(db, Product, product_id, "Product")
    db.delete(product)
    db.commit()
    return {"success": True}

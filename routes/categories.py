from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.db import get_db
from models.category import Category
from routes._crud import apply_updates, get_or_404
from schemas.category import CategoryBatchIn, CategoryIn, CategoryOut
from security.admin import require_admin

router = APIRouter(prefix="/categories", tags=["categories"])


@router.get("", response_model=List[CategoryOut])
def list_categories(db: Session = Depends(get_db)):
    return db.query(Category).order_by(Category.name).all()


@router.post("", response_model=CategoryOut, dependencies=[Depends(require_admin)])
def create_category(data: CategoryIn, db: Session = Depends(get_db)):
    existing = db.query(Category).filter(Category.slug == data.slug).one_or_none()
    if existing:
        raise HTTPException(status_code=400, detail="Slug already exists")

    category = Category(name=data.name.strip(), slug=data.slug)
    db.add(category)
    db.commit()
    db.refresh(category)
    return category


@router.post("/batch", response_model=List[CategoryOut], dependencies=[Depends(require_admin)])
def create_categories_batch(data: CategoryBatchIn, db: Session = Depends(get_db)):
    # Existing slugs are skipped; only the inserted rows are returned
    slugs = [c.slug for c in data.categories]
    taken = {slug for (slug,) in db.query(Category.slug).filter(Category.slug.in_(slugs)).all()}

    inserted: list[Category] = []
    for item in data.categories:
        if item.slug in taken:
            continue
        category = Category(name=item.name.strip(), slug=item.slug)
        db.add(category)
        inserted.append(category)
        taken.add(item.slug)

    db.commit()
    for category in inserted:
        db.refresh(category)
    return inserted


@router.put("/{category_id}", response_model=CategoryOut, dependencies=[Depends(require_admin)])
def update_category(category_id: str, data: Dict[str, Any] = Body(...), db: Session = Depends(get_db)):
    category = get_or_404(db, Category, category_id, "Category")
    apply_updates(category, data)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=400, detail="Slug already exists") from exc
    db.refresh(category)
    return category


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
def delete_category(category_id: str, db: Session = Depends(get_db)):
    category = get_or_404(db, Category, category_id, "Category")
    db.delete(category)
    db.commit()
    return {"success": True}

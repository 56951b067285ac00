from typing import Any, Dict, Type, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session

from core.db import Base

ModelT = TypeVar("ModelT", bound=Base)

READ_ONLY_FIELDS = {"id", "created_at", "updated_at"}


def get_or_404(db: Session, model: Type[ModelT], obj_id: str, label: str) -> ModelT:
    obj = db.get(model, obj_id)
    if obj is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def apply_updates(obj: Base, data: Dict[str, Any]) -> None:
    """Copy the supplied columns onto ``obj``, skipping read-only ones."""
    columns = set(obj.__table__.columns.keys())
    fields = {k: v for k, v in data.items() if k not in READ_ONLY_FIELDS}
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")

    unknown = sorted(set(fields) - columns)
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown fields: {', '.join(unknown)}")

    for key, value in fields.items():
        setattr(obj, key, value)

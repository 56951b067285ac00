from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from core.db import get_db
from models.store_setting import StoreSetting
from schemas.setting import SettingOut, SettingValueIn
from security.admin import require_admin

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=List[SettingOut])
def list_settings(db: Session = Depends(get_db)):
    return db.query(StoreSetting).order_by(StoreSetting.key).all()


@router.put("/{key}", dependencies=[Depends(require_admin)])
def put_setting(key: str, data: SettingValueIn, db: Session = Depends(get_db)):
    setting = db.query(StoreSetting).filter(StoreSetting.key == key).one_or_none()
    if setting is None:
        db.add(StoreSetting(key=key, value=data.value))
    else:
        setting.value = data.value
    db.commit()
    return {"success": True}

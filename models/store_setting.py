from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models._mixins import UUIDPrimaryKey


class StoreSetting(UUIDPrimaryKey, Base):
    __tablename__ = "store_settings"

    key: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    value: Mapped[str | None] = mapped_column(Text, nullable=True)

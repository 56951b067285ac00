from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models._mixins import UUIDPrimaryKey, Timestamps


class Banner(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "banners"

    image_url: Mapped[str] = mapped_column(String(1000))
    link: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models._mixins import UUIDPrimaryKey, Timestamps


class Seller(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "sellers"

    name: Mapped[str] = mapped_column(String(150), index=True)
    # Used as the /v/<slug> URL prefix of the catalog
    slug: Mapped[str] = mapped_column(String(180), unique=True, index=True)
    whatsapp: Mapped[str | None] = mapped_column(String(30), nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)

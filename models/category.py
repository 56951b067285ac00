from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models._mixins import UUIDPrimaryKey, Timestamps


class Category(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "categories"

    name: Mapped[str] = mapped_column(String(150), index=True)
    slug: Mapped[str] = mapped_column(String(180), unique=True, index=True)

from sqlalchemy import String, ForeignKey, Integer, Numeric, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from core.db import Base
from models._mixins import UUIDPrimaryKey, Timestamps
from services.product_rows import PLACEHOLDER_IMAGE


class Product(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), index=True)
    # Upsert conflict key; NULL for hand-made products
    code: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True, index=True)
    # Unique among active products only, checked in the route
    slug: Mapped[str] = mapped_column(String(255), index=True)
    price: Mapped[float] = mapped_column(Numeric(12, 2), default=0)
    original_price: Mapped[float | None] = mapped_column(Numeric(12, 2), nullable=True)
    description: Mapped[str] = mapped_column(Text, default="")
    image_url: Mapped[str] = mapped_column(String(1000), default=PLACEHOLDER_IMAGE)
    category_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"), nullable=True, index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    featured_order: Mapped[int | None] = mapped_column(Integer, nullable=True)
    brand: Mapped[str | None] = mapped_column(String(150), nullable=True)
    quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_of_measure: Mapped[str | None] = mapped_column(String(20), nullable=True)
    reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    manufacturer_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    quick_filter_1: Mapped[bool] = mapped_column(Boolean, default=False)
    quick_filter_2: Mapped[bool] = mapped_column(Boolean, default=False)

    category = relationship("Category")

from sqlalchemy import String, Integer, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from core.db import Base
from models._mixins import UUIDPrimaryKey, Timestamps


class PaymentCondition(UUIDPrimaryKey, Timestamps, Base):
    __tablename__ = "payment_conditions"

    name: Mapped[str] = mapped_column(String(150))
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, index=True)

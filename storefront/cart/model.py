from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..common.db import Base, utcnow
from ..common.money import money_str
from ..inventory.model import Product


class CartItem(Base):
    __tablename__ = "cart_items"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_cart_items_quantity_positive"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    selected_size: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    selected_color: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    product: Mapped[Product] = relationship(lazy="selectin")

    @property
    def line_total(self) -> Decimal:
        if self.product is None:
            return Decimal("0.00")
        return self.product.price * self.quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "quantity": self.quantity,
            "selected_size": self.selected_size,
            "selected_color": self.selected_color,
            "line_total": money_str(self.line_total),
            "product": self.product.to_dict() if self.product is not None else None,
        }

# server/models/sweet.py

from datetime import datetime
from sqlalchemy import Column, Integer, String, Float, DateTime, CheckConstraint
from . import Base


class Sweet(Base):
    __tablename__ = "sweets"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_sweets_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_sweets_quantity_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    category = Column(String, index=True, nullable=False)
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    @property
    def in_stock(self) -> bool:
        return self.quantity > 0

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "quantity": self.quantity,
            "in_stock": self.in_stock,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

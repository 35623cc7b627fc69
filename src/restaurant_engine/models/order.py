from sqlalchemy import Column, Integer, String, Numeric, DateTime, func
from sqlalchemy.orm import relationship

from ..db.base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, autoincrement=False)  # id из счётчика заказов
    customer_id = Column(String(255), nullable=True, index=True)
    # статусы храним строками отображения: "Pending", "Paid", "Cash"
    status = Column(String(50), nullable=False)
    payment_status = Column(String(50), nullable=False)
    payment_method = Column(String(50), nullable=True)
    coupon_code = Column(String(64), nullable=True)
    discount_applied = Column(Numeric(10, 2), nullable=False, default=0)

    # суммы на момент сохранения, для отчётов
    subtotal_amount = Column(Numeric(10, 2), nullable=False, default=0)
    net_amount = Column(Numeric(10, 2), nullable=False, default=0)
    tax_amount = Column(Numeric(10, 2), nullable=False, default=0)
    total_amount = Column(Numeric(10, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # связи
    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan")

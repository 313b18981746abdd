import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, Date, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    CONVERTED = "converted"
    CANCELLED = "cancelled"


# Price offer for a client; converting it produces a sale
class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Integer, primary_key=True, index=True)
    number = Column(Integer, index=True, nullable=False)
    client_id = Column(Integer, ForeignKey("clients.id", ondelete="SET NULL"), index=True, nullable=True)
    valid_until = Column(Date, nullable=True)
    status = Column(
        Enum(QuoteStatus, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=QuoteStatus.PENDING,
    )
    total_amount = Column(Float, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    client = relationship("Client")
    items = relationship("QuoteItem", back_populates="quote", cascade="all, delete-orphan")

    @property
    def full_number(self):
        return f"D-{self.number:06d}"

    @property
    def client_name(self):
        return self.client.full_name if self.client else None


class QuoteItem(Base):
    __tablename__ = "quote_items"

    id = Column(Integer, primary_key=True, index=True)
    quote_id = Column(Integer, ForeignKey("quotes.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="SET NULL"), nullable=True)
    product_name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Float, nullable=False)
    total_price = Column(Float, nullable=False)

    quote = relationship("Quote", back_populates="items")

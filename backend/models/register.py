import enum
from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, Enum, func
from sqlalchemy.orm import relationship
from database import Base


class RegisterStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class TransactionType(str, enum.Enum):
    IN = "in"
    OUT = "out"


def _enum_values(e):
    return [m.value for m in e]


# Cash register session; at most one is open at any time
class RegisterSession(Base):
    __tablename__ = "register_sessions"

    id = Column(Integer, primary_key=True, index=True)
    opening_balance = Column(Float, nullable=False, default=0.0)
    current_balance = Column(Float, nullable=False, default=0.0)
    status = Column(Enum(RegisterStatus, values_callable=_enum_values), nullable=False, default=RegisterStatus.OPEN, index=True)
    opened_at = Column(DateTime(timezone=True), server_default=func.now())
    closed_at = Column(DateTime(timezone=True), nullable=True)
    opened_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    transactions = relationship("RegisterTransaction", back_populates="session", cascade="all, delete-orphan")


# Money moving in or out of the drawer during a session
class RegisterTransaction(Base):
    __tablename__ = "register_transactions"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("register_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    type = Column(Enum(TransactionType, values_callable=_enum_values), nullable=False)
    amount = Column(Float, nullable=False)
    description = Column(String, nullable=True)
    payment_method = Column(String, nullable=False, default="cash")
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="SET NULL"), nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    session = relationship("RegisterSession", back_populates="transactions")

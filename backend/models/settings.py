from sqlalchemy import Column, Integer, String, Float, ForeignKey, DateTime, func
from database import Base


DEFAULT_BUSINESS_NAME = "Temps d'Or"


# Shop configuration, kept as a single row: identity
# used on receipts and the per-gram rates weight-priced products derive from.
class AccountSettings(Base):
    __tablename__ = "settings"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    business_name = Column(String, nullable=False, default=DEFAULT_BUSINESS_NAME)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    logo_url = Column(String, nullable=True)
    theme = Column(String, nullable=False, default="light")
    accent_color = Column(String, nullable=False, default="blue")

    material_price_per_gram = Column(Float, nullable=False, default=0.0)
    labor_price_per_gram = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

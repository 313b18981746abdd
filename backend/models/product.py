# backend/models/product.py
from sqlalchemy import (
    Column, Integer, String, Float, Boolean, ForeignKey, DateTime, JSON, CheckConstraint, func
)
from sqlalchemy.orm import relationship
from database import Base


# A sellable item. Weight-priced products carry the price breakdown
# (material cost + labor cost + margin = sale price) as snapshots taken at the
# rates in force when they were last priced. Composed products bundle other
# products listed in `components` as [{"product_id": ..., "quantity": ...}].
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, index=True)
    description = Column(String, nullable=True)
    reference = Column(String, unique=True, nullable=False, index=True)
    barcode = Column(String, nullable=True, index=True)

    weight = Column(Float, nullable=False, default=0.0)  # grams

    material_cost = Column(Float, nullable=False, default=0.0)
    labor_cost = Column(Float, nullable=False, default=0.0)
    margin = Column(Float, nullable=False, default=0.0)
    purchase_price = Column(Float, nullable=False, default=0.0)
    sale_price = Column(Float, nullable=False, default=0.0)
    minimum_sale_price = Column(Float, nullable=False, default=0.0)

    quantity = Column(Integer, CheckConstraint("quantity >= 0"), nullable=False, default=0)

    category_id = Column(Integer, ForeignKey("categories.id"), nullable=True, index=True)
    depot_id = Column(Integer, ForeignKey("depots.id"), nullable=True, index=True)

    image_url = Column(String, nullable=True)

    is_composed = Column(Boolean, nullable=False, default=False)
    components = Column(JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    category = relationship("Category")
    depot = relationship("Depot")
    promotions = relationship("Promotion", back_populates="product", cascade="all, delete-orphan")

    @property
    def category_name(self):
        return self.category.name if self.category else None

    @property
    def depot_name(self):
        return self.depot.name if self.depot else None

    @property
    def cost_price(self):
        return (self.material_cost or 0.0) + (self.labor_cost or 0.0)

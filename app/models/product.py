# app/models/product.py
from sqlalchemy import Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.sql import func

from app.utils.database import Base


class Product(Base):
    __tablename__ = "product"

    product_code = Column(String(50), primary_key=True)
    product_name = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    category = Column(String(50), nullable=True)
    status = Column(String(20), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class ProductBranch(Base):
    __tablename__ = "product_branches"

    product_code = Column(String(50), ForeignKey("product.product_code", ondelete="CASCADE"), primary_key=True)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True)

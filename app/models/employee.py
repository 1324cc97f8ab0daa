# app/models/employee.py
from uuid import uuid4

from sqlalchemy import Column, DateTime, ForeignKey, String
from sqlalchemy.sql import func

from app.utils.database import Base

STAFF_STATUSES = ("manager", "sales")


class Employee(Base):
    __tablename__ = "employees"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    from_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    to_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # manager | sales
    status = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())


class EmployeeBranch(Base):
    __tablename__ = "employee_branches"

    employee_id = Column(String(36), ForeignKey("employees.id", ondelete="CASCADE"), primary_key=True)
    branch_id = Column(String(36), ForeignKey("branches.id", ondelete="CASCADE"), primary_key=True)

# app/services/store_service.py
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.product import ProductBranch
from app.models.store import Branch, Store
from app.services.employee_service import EmployeeService


class StoreService:
    def __init__(self, session: AsyncSession, employees: Optional[EmployeeService] = None):
        self.session = session
        self.employees = employees or EmployeeService(session)

    async def store_exists(self, store_id: str) -> bool:
        row = await self.session.execute(select(Store.id).where(Store.id == store_id))
        return row.scalar_one_or_none() is not None

    async def get_store_owner(self, store_id: str) -> Optional[str]:
        row = await self.session.execute(select(Store.owner_id).where(Store.id == store_id))
        return row.scalar_one_or_none()

    async def get_store_id_for_product(self, product_code: str) -> Optional[str]:
        # product -> first branch -> store
        stmt = (
            select(Branch.store_id)
            .join(ProductBranch, ProductBranch.branch_id == Branch.id)
            .where(ProductBranch.product_code == product_code)
            .order_by(ProductBranch.branch_id)
            .limit(1)
        )
        return (await self.session.execute(stmt)).scalar_one_or_none()

    async def get_user_store_role(self, user_id: str, store_id: str) -> Optional[str]:
        """'owner', 'manager' or 'sales' for the given store, None otherwise."""
        if not user_id or not store_id:
            return None
        owner_id = await self.get_store_owner(store_id)
        if owner_id is not None and owner_id == user_id:
            return "owner"
        return await self.employees.get_staff_role(user_id, store_id)

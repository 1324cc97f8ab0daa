# app/services/employee_service.py
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.employee import Employee, EmployeeBranch, STAFF_STATUSES
from app.models.store import Branch


class EmployeeService:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _staff_roles_stmt(self, user_id: str, store_id: str):
        return (
            select(Employee.status)
            .join(EmployeeBranch, EmployeeBranch.employee_id == Employee.id)
            .join(Branch, Branch.id == EmployeeBranch.branch_id)
            .where(
                Employee.to_user_id == user_id,
                Employee.status.in_(STAFF_STATUSES),
                Branch.store_id == store_id,
            )
        )

    async def get_staff_role(self, user_id: str, store_id: str) -> str | None:
        """manager wins over sales when the user holds both on different branches."""
        rows = (await self.session.execute(self._staff_roles_stmt(user_id, store_id))).scalars().all()
        if not rows:
            return None
        return "manager" if "manager" in rows else rows[0]

    async def is_user_staff_of_store(self, user_id: str, store_id: str) -> bool:
        stmt = self._staff_roles_stmt(user_id, store_id).limit(1)
        return (await self.session.execute(stmt)).first() is not None

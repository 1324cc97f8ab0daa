# app/services/user_action_service.py
from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Awaitable, List, Optional, TypeVar

from fastapi import HTTPException, status
from sqlalchemy import Select, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from app.config import settings
from app.models.product import Product
from app.models.user import User
from app.models.user_action import ActionType, UserAction
from app.schemas.user_action import (
    ActionPayload,
    ActionStat,
    AnalyticsSummary,
    RecentActionOut,
    StoreAnalyticsResponse,
    UserActionList,
    UserActionOut,
    UserActionQuery,
)
from app.services.actor import Actor, Anonymous, Registered, classify_actor, is_anonymous_marker
from app.services.employee_service import EmployeeService
from app.services.lookup import Lookup, attempt
from app.services.store_service import StoreService
from app.services.user_service import UserService

logger = logging.getLogger(__name__)

T = TypeVar("T")

SEARCH_COLUMNS = {
    "product_name": Product.product_name,
    "product_id": UserAction.product_id,
    "user_email": User.email,
    "user_name": User.name,
    "user_phone": User.phone,
}


class AnalyticsError(HTTPException):
    """Infrastructure failure while recording or reading user actions."""

    def __init__(self, detail: str, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR):
        super().__init__(status_code=status_code, detail=detail)


def _clamp(value: Optional[int], default: int, upper: int) -> int:
    if value is None:
        return default
    return max(1, min(value, upper))


# largest OFFSET every backend accepts (signed 32-bit)
MAX_OFFSET = 2**31 - 1
IP_ADDRESS_MAX_LENGTH = 50


def _as_utc(value: datetime) -> datetime:
    """Naive UTC, the form created_at is stored in."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class UserActionService:
    def __init__(
        self,
        session: AsyncSession,
        *,
        users: Optional[UserService] = None,
        stores: Optional[StoreService] = None,
        employees: Optional[EmployeeService] = None,
    ):
        self.session = session
        self.users = users or UserService(session)
        self.employees = employees or EmployeeService(session)
        self.stores = stores or StoreService(session, self.employees)

    # ─────────────────────────────────────────
    #  recording
    # ─────────────────────────────────────────

    async def record_action(
        self,
        actor_identifier: Optional[str],
        payload: Optional[ActionPayload],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[UserAction]:
        """Classify, validate and persist one action event.

        Returns None when there is nothing to record or when the event comes
        from the owner or staff of the store it references. Only a failed
        insert raises.
        """
        if not actor_identifier or payload is None:
            return None

        actor = await classify_actor(actor_identifier, self._find_user)
        store_id = await self._resolve_store_id(payload)

        if store_id and await self._is_self_action(actor, store_id):
            logger.info(
                "suppressed %s from staff user %s on store %s",
                payload.action_type.value, actor.user_id, store_id,
            )
            return None

        action = UserAction(
            user_id=actor.user_id if isinstance(actor, Registered) else None,
            anonymous_user_id=actor.token if isinstance(actor, Anonymous) else None,
            action_type=payload.action_type,
            store_id=store_id,
            product_id=payload.product_id or None,
            action_metadata=payload.metadata,
            ip_address=(ip_address or "")[:IP_ADDRESS_MAX_LENGTH] or None,
            user_agent=user_agent or None,
            created_at=_as_utc(datetime.now(timezone.utc)),
        )
        self.session.add(action)
        try:
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception("failed to record %s", payload.action_type.value)
            raise AnalyticsError(
                "Failed to record user action",
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        logger.info("recorded %s (%s) id=%s", action.action_type.value, _actor_label(actor), action.id)
        return action

    async def record_search(
        self,
        actor_identifier: Optional[str],
        store_id: str,
        search_query: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[UserAction]:
        payload = ActionPayload(
            action_type=ActionType.SEARCH,
            store_id=store_id,
            metadata={"search_query": search_query},
        )
        return await self.record_action(actor_identifier, payload, ip_address, user_agent)

    async def _lookup(self, awaitable: Awaitable[T], what: str) -> Lookup[T]:
        result = await attempt(awaitable, what=what)
        if not result.ok:
            # leave the session usable for the insert that follows; this also
            # expires instances already loaded in it
            await self.session.rollback()
        return result

    async def _find_user(self, user_id: str) -> Lookup[bool]:
        return await self._lookup(self.users.user_exists(user_id), what=f"user {user_id}")

    async def _resolve_store_id(self, payload: ActionPayload) -> Optional[str]:
        candidate = payload.store_id or None
        if candidate is None and payload.product_id:
            resolved = await self._lookup(
                self.stores.get_store_id_for_product(payload.product_id),
                what=f"store of product {payload.product_id}",
            )
            candidate = resolved.value_or(None)
        if candidate is None:
            return None

        exists = await self._lookup(self.stores.store_exists(candidate), what=f"store {candidate}")
        if not exists.value_or(False):
            logger.warning("dropping unknown store reference %s", candidate)
            return None
        return candidate

    async def _is_self_action(self, actor: Actor, store_id: str) -> bool:
        if not isinstance(actor, Registered):
            return False

        owner = await self._lookup(self.stores.get_store_owner(store_id), what=f"owner of {store_id}")
        if owner.value_or(None) == actor.user_id:
            return True

        staff = await self._lookup(
            self.employees.is_user_staff_of_store(actor.user_id, store_id),
            what=f"staff of {store_id}",
        )
        return bool(staff.value_or(False))

    # ─────────────────────────────────────────
    #  queries
    # ─────────────────────────────────────────

    async def get_viewer_role(self, user_id: str, store_id: str) -> Optional[str]:
        try:
            return await self.stores.get_user_store_role(user_id, store_id)
        except SQLAlchemyError:
            logger.exception("failed to resolve role of %s in store %s", user_id, store_id)
            raise AnalyticsError("Failed to check store access")

    async def get_user_actions(self, user_id: str, query: UserActionQuery) -> UserActionList:
        return await self._list_actions(_actor_clause(user_id), query, failure="Failed to fetch user actions")

    async def get_product_actions(self, product_id: str, query: UserActionQuery) -> UserActionList:
        return await self._list_actions(
            UserAction.product_id == product_id, query, failure="Failed to fetch product actions"
        )

    async def get_user_action_stats(self, user_id: str) -> List[ActionStat]:
        stmt = (
            select(UserAction.action_type, func.count(UserAction.id))
            .where(_actor_clause(user_id))
            .group_by(UserAction.action_type)
            .order_by(UserAction.action_type)
        )
        try:
            rows = (await self.session.execute(stmt)).all()
        except SQLAlchemyError:
            logger.exception("failed to fetch action stats for %s", user_id)
            raise AnalyticsError("Failed to fetch action statistics")
        return [ActionStat(action_type=action_type, count=count) for action_type, count in rows]

    async def get_store_actions(self, store_id: str, query: UserActionQuery) -> StoreAnalyticsResponse:
        page_size = _clamp(query.limit, settings.STORE_ACTIONS_PAGE_SIZE, settings.STORE_ACTIONS_MAX_PAGE_SIZE)
        page = max(1, min(query.page or 1, MAX_OFFSET // page_size + 1))

        scope = [UserAction.store_id == store_id, *self._date_clauses(query)]
        recent_scope = list(scope)
        if query.action_type:
            recent_scope.append(UserAction.action_type == query.action_type)

        breakdown_stmt = self._apply_search(
            select(UserAction.action_type, func.count(UserAction.id))
            .select_from(UserAction)
            .where(*scope)
            .group_by(UserAction.action_type),
            query,
        )
        total_stmt = self._apply_search(
            select(func.count(UserAction.id)).select_from(UserAction).where(*recent_scope), query
        )
        page_stmt = self._apply_search(
            select(UserAction)
            .where(*recent_scope)
            .options(joinedload(UserAction.user), joinedload(UserAction.product))
            .order_by(UserAction.created_at.desc(), UserAction.id.desc())
            .limit(page_size)
            .offset((page - 1) * page_size),
            query,
        )

        try:
            counted = (await self.session.execute(breakdown_stmt)).all()
            total = (await self.session.execute(total_stmt)).scalar_one()
            rows = (await self.session.execute(page_stmt)).unique().scalars().all()
        except SQLAlchemyError:
            logger.exception("failed to fetch store actions for %s", store_id)
            raise AnalyticsError("Failed to fetch store actions")

        breakdown = {action_type.value: 0 for action_type in ActionType}
        for action_type, count in counted:
            breakdown[ActionType(action_type).value] = count

        return StoreAnalyticsResponse(
            summary=_summarize(breakdown),
            breakdown=breakdown,
            recent_actions=[RecentActionOut.model_validate(row) for row in rows],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def _list_actions(self, clause, query: UserActionQuery, *, failure: str) -> UserActionList:
        limit = _clamp(query.limit, settings.ACTIONS_DEFAULT_LIMIT, settings.ACTIONS_MAX_LIMIT)
        if query.offset is not None:
            offset = max(0, query.offset)
        else:
            offset = (max(1, query.page or 1) - 1) * limit
        offset = min(offset, MAX_OFFSET)

        clauses = [clause, *self._date_clauses(query)]
        if query.action_type:
            clauses.append(UserAction.action_type == query.action_type)
        if query.store_id:
            clauses.append(UserAction.store_id == query.store_id)
        if query.product_id:
            clauses.append(UserAction.product_id == query.product_id)

        stmt = (
            select(UserAction)
            .where(*clauses)
            .order_by(UserAction.created_at.desc(), UserAction.id.desc())
            .limit(limit)
            .offset(offset)
        )
        try:
            total = (await self.session.execute(select(func.count(UserAction.id)).where(*clauses))).scalar_one()
            rows = (await self.session.execute(stmt)).scalars().all()
        except SQLAlchemyError:
            logger.exception(failure)
            raise AnalyticsError(failure)
        return UserActionList(data=[UserActionOut.model_validate(r) for r in rows], total=total)

    @staticmethod
    def _date_clauses(query: UserActionQuery) -> list:
        clauses = []
        if query.start_date:
            clauses.append(UserAction.created_at >= _as_utc(query.start_date))
        if query.end_date:
            clauses.append(UserAction.created_at <= _as_utc(query.end_date))
        return clauses

    @staticmethod
    def _apply_search(stmt: Select, query: UserActionQuery) -> Select:
        if not query.search_active:
            return stmt
        column = SEARCH_COLUMNS[query.search_type]
        pattern = f"%{_escape_like(query.search_value.strip())}%"
        if column is not UserAction.product_id:
            if query.search_type.startswith("user_"):
                stmt = stmt.join(User, User.id == UserAction.user_id)
            else:
                stmt = stmt.join(Product, Product.product_code == UserAction.product_id)
        return stmt.where(column.ilike(pattern, escape="\\"))


def _actor_clause(user_id: str):
    if is_anonymous_marker(user_id):
        return UserAction.anonymous_user_id == user_id
    return UserAction.user_id == user_id


def _summarize(breakdown: dict) -> AnalyticsSummary:
    return AnalyticsSummary(
        total_actions=sum(breakdown.values()),
        product_views=breakdown[ActionType.PRODUCT_VIEW.value],
        favorites=breakdown[ActionType.PRODUCT_FAVORITE.value],
        contacts=breakdown[ActionType.WHATSAPP_CLICK.value] + breakdown[ActionType.PHONE_CLICK.value],
    )


def _actor_label(actor: Actor) -> str:
    if isinstance(actor, Registered):
        return f"user {actor.user_id}"
    return f"anonymous {actor.token}"

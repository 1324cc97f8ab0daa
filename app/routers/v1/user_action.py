# app/routers/v1/user_action.py
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.utils.database import get_session
from app.models.user_action import ActionType
from app.schemas.common import ErrorResponse
from app.schemas.user_action import (
    ActionStat,
    SearchActionCreate,
    SearchType,
    StoreAnalyticsResponse,
    UserActionCreate,
    UserActionList,
    UserActionOut,
    UserActionQuery,
)
from app.services.user_action_service import UserActionService
from app.routers.auth import get_current_user_id, get_optional_user_id

router = APIRouter(
    prefix="/v1/user-actions",
    tags=["user-actions"],
    responses={500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)

STORE_ANALYTICS_ROLES = {"owner", "manager", "sales"}


def get_user_action_service(session: AsyncSession = Depends(get_session)) -> UserActionService:
    return UserActionService(session)


def client_ip(request: Request) -> Optional[str]:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or None
    return request.client.host if request.client else None


def action_query(
    action_type: Optional[ActionType] = Query(None),
    # renamed so they never shadow the {store_id} / {product_id} path params
    store_filter: Optional[str] = Query(None, alias="store_id"),
    product_filter: Optional[str] = Query(None, alias="product_id"),
    start_date: Optional[datetime] = Query(None, description="inclusive lower bound"),
    end_date: Optional[datetime] = Query(None, description="inclusive upper bound"),
    limit: Optional[int] = Query(None),
    offset: Optional[int] = Query(None),
    page: Optional[int] = Query(None),
    search_type: Optional[SearchType] = Query(None),
    search_value: Optional[str] = Query(None),
) -> UserActionQuery:
    return UserActionQuery(
        action_type=action_type,
        store_id=store_filter,
        product_id=product_filter,
        start_date=start_date,
        end_date=end_date,
        limit=limit,
        offset=offset,
        page=page,
        search_type=search_type,
        search_value=search_value,
    )


@router.post("", response_model=Optional[UserActionOut], summary="Record a user action")
async def record_action(
    payload: UserActionCreate,
    request: Request,
    auth_user_id: Optional[str] = Depends(get_optional_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    action = await service.record_action(
        auth_user_id or payload.user_id,
        payload,
        client_ip(request),
        request.headers.get("user-agent"),
    )
    return UserActionOut.model_validate(action) if action else None


@router.post("/search", response_model=Optional[UserActionOut], summary="Record a store search")
async def record_search(
    body: SearchActionCreate,
    request: Request,
    auth_user_id: Optional[str] = Depends(get_optional_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    action = await service.record_search(
        auth_user_id or body.user_id,
        body.store_id,
        body.search_query,
        client_ip(request),
        request.headers.get("user-agent"),
    )
    return UserActionOut.model_validate(action) if action else None


@router.get("/me", response_model=UserActionList, summary="Current user's actions")
async def get_my_actions(
    query: UserActionQuery = Depends(action_query),
    user_id: str = Depends(get_current_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    return await service.get_user_actions(user_id, query)


@router.get("/me/stats", response_model=List[ActionStat], summary="Current user's action counts")
async def get_my_stats(
    user_id: str = Depends(get_current_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    return await service.get_user_action_stats(user_id)


@router.get("/user/{user_id}", response_model=UserActionList, summary="Actions of one user")
async def get_user_actions(
    user_id: str,
    query: UserActionQuery = Depends(action_query),
    _uid: str = Depends(get_current_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    return await service.get_user_actions(user_id, query)


@router.get(
    "/store/{store_id}",
    response_model=StoreAnalyticsResponse,
    summary="Store analytics dashboard",
    responses={403: {"model": ErrorResponse}},
)
async def get_store_actions(
    store_id: str,
    query: UserActionQuery = Depends(action_query),
    user_id: str = Depends(get_current_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    role = await service.get_viewer_role(user_id, store_id)
    if role not in STORE_ANALYTICS_ROLES:
        raise HTTPException(status_code=403, detail="no access to this store's analytics")
    return await service.get_store_actions(store_id, query)


@router.get("/product/{product_id}", response_model=UserActionList, summary="Actions on one product")
async def get_product_actions(
    product_id: str,
    query: UserActionQuery = Depends(action_query),
    _uid: str = Depends(get_current_user_id),
    service: UserActionService = Depends(get_user_action_service),
):
    return await service.get_product_actions(product_id, query)

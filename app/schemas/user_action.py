# app/schemas/user_action.py
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.models.user_action import ActionType

SearchType = Literal["product_name", "product_id", "user_email", "user_name", "user_phone"]


class ActionPayload(BaseModel):
    action_type: ActionType
    store_id: Optional[str] = None
    product_id: Optional[str] = Field(None, max_length=50)
    metadata: Optional[Dict[str, Any]] = None


class UserActionCreate(ActionPayload):
    # visitor token used when the request carries no bearer token
    user_id: Optional[str] = None


class SearchActionCreate(BaseModel):
    store_id: str
    search_query: str
    user_id: Optional[str] = None


class UserActionQuery(BaseModel):
    action_type: Optional[ActionType] = None
    store_id: Optional[str] = None
    product_id: Optional[str] = None
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    limit: Optional[int] = None
    offset: Optional[int] = None
    page: Optional[int] = None
    search_type: Optional[SearchType] = None
    search_value: Optional[str] = None

    @property
    def search_active(self) -> bool:
        return bool(self.search_type and self.search_value and self.search_value.strip())


class UserActionOut(BaseModel):
    id: str
    user_id: Optional[str] = None
    anonymous_user_id: Optional[str] = None
    action_type: ActionType
    store_id: Optional[str] = None
    product_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = Field(
        default=None,
        validation_alias=AliasChoices("action_metadata", "metadata"),
    )
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class UserActionList(BaseModel):
    data: List[UserActionOut]
    total: int


class ActionStat(BaseModel):
    action_type: ActionType
    count: int


class ActionUserOut(BaseModel):
    id: str
    name: str
    email: str
    phone: Optional[str] = None
    model_config = ConfigDict(from_attributes=True)


class ActionProductOut(BaseModel):
    product_code: str
    product_name: str
    model_config = ConfigDict(from_attributes=True)


class RecentActionOut(UserActionOut):
    user: Optional[ActionUserOut] = None
    product: Optional[ActionProductOut] = None


class AnalyticsSummary(BaseModel):
    total_actions: int
    product_views: int
    favorites: int
    contacts: int


class StoreAnalyticsResponse(BaseModel):
    summary: AnalyticsSummary
    breakdown: Dict[str, int]
    recent_actions: List[RecentActionOut] = Field(alias="recentActions")
    total: int
    page: int
    page_size: int = Field(alias="pageSize")
    total_pages: int = Field(alias="totalPages")
    model_config = ConfigDict(populate_by_name=True)

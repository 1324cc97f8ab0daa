# app/models/user_action.py
import enum
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, DateTime, Enum, ForeignKey, JSON, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.utils.database import Base


class ActionType(str, enum.Enum):
    HOME_PAGE_VISIT = "home_page_visit"
    STORE_DETAILS_OPEN = "store_details_open"
    PRODUCT_VIEW = "product_view"
    PRODUCT_FAVORITE = "product_favorite"
    PRODUCT_UNFAVORITE = "product_unfavorite"
    WHATSAPP_CLICK = "whatsapp_click"
    PHONE_CLICK = "phone_click"
    MAP_OPEN = "map_open"
    SEARCH = "search"
    BRANCH_VISIT = "branch_visit"


class UserAction(Base):
    """Append-only analytics event. Exactly one of user_id / anonymous_user_id is set."""

    __tablename__ = "user_actions"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (anonymous_user_id IS NULL)",
            name="ck_user_actions_single_actor",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id = Column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    anonymous_user_id = Column(String(255), nullable=True, index=True)

    action_type = Column(
        Enum(ActionType, name="action_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    store_id = Column(
        String(36),
        ForeignKey("store.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    # product codes are stored as supplied, no FK
    product_id = Column(String(50), nullable=True, index=True)

    # "metadata" is reserved on declarative classes
    action_metadata = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)
    ip_address = Column(String(50), nullable=True)
    user_agent = Column(Text, nullable=True)

    user = relationship("User", lazy="raise")
    product = relationship(
        "Product",
        primaryjoin="foreign(UserAction.product_id) == Product.product_code",
        viewonly=True,
        lazy="raise",
    )

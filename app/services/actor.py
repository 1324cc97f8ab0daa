# app/services/actor.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union
from uuid import UUID

from app.config import settings
from app.services.lookup import Lookup

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Registered:
    user_id: str


@dataclass(frozen=True)
class Anonymous:
    token: str


Actor = Union[Registered, Anonymous]


def parse_uuid(value: str) -> Optional[str]:
    """Canonical lowercase form of ``value`` if it is a UUID, else None."""
    try:
        return str(UUID(value.strip()))
    except (ValueError, AttributeError, TypeError):
        return None


def is_anonymous_marker(identifier: str) -> bool:
    return identifier.startswith(settings.ANONYMOUS_PREFIX)


def anonymous(identifier: str) -> Anonymous:
    if not is_anonymous_marker(identifier):
        identifier = f"{settings.ANONYMOUS_PREFIX}{identifier}"
    # anonymous_user_id column width
    return Anonymous(token=identifier[:255])


async def classify_actor(
    identifier: str,
    find_user: Callable[[str], Awaitable[Lookup[bool]]],
) -> Actor:
    """Resolve a raw actor identifier into a Registered or Anonymous actor.

    ``find_user`` reports whether a user id exists. An unknown UUID and a
    failed lookup both degrade to an anonymous actor keyed by the identifier.
    """
    user_id = parse_uuid(identifier)
    if user_id is None:
        return anonymous(identifier)

    found = await find_user(user_id)
    if not found.ok:
        logger.warning("user lookup failed for %s, recording as anonymous", user_id)
        return anonymous(user_id)
    if not found.value:
        logger.info("unknown user id %s, recording as anonymous", user_id)
        return anonymous(user_id)
    return Registered(user_id=user_id)

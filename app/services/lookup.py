# app/services/lookup.py
"""Explicit result wrapper for collaborator calls made while recording.

The recorder must never fail because a directory lookup failed, so each call
is captured as a ``Lookup`` and the caller decides what a failure means.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Lookup(Generic[T]):
    value: Optional[T] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, fallback: T) -> T:
        return self.value if self.ok else fallback


async def attempt(awaitable: Awaitable[T], *, what: str) -> Lookup[T]:
    try:
        return Lookup(value=await awaitable)
    except (SQLAlchemyError, OSError) as exc:
        logger.warning("lookup failed (%s): %s", what, exc)
        return Lookup(error=exc)


from typing import Any
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    detail: Any = Field(..., description="Human readable error message")

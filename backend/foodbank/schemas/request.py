"""Request decision schemas."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Decision(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


class DecisionIn(BaseModel):
    decision: Decision
    comment: Optional[str] = Field(default=None, max_length=2000)


class ActionResponse(BaseModel):
    success: bool
    message: str
    warning: bool = False

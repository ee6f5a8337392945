"""Sampling reason models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class SamplingReasonCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Normal sampling"])
    description: Optional[str] = None
    is_active: bool = True


class SamplingReasonUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class SamplingReasonRead(SamplingReasonCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

"""Parts master models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


class PartBase(BaseModel):
    product_family: Optional[str] = Field(None, max_length=100, description="Model")
    version: Optional[str] = Field(None, max_length=100)
    production_site: Optional[str] = Field(None, max_length=10)
    part_site: Optional[str] = Field(None, max_length=10)
    customer: Optional[str] = Field(None, max_length=100)
    product_type: Optional[str] = Field(None, max_length=50)


class PartCreate(PartBase):
    part_no: str = Field(..., min_length=1, max_length=30, examples=["ITM-100"])
    is_active: bool = True


class PartUpdate(PartBase):
    is_active: Optional[bool] = None


class PartRead(PartBase):
    part_no: str
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

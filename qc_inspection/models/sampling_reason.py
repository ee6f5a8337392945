"""Sampling reason master (why a lot was sampled: normal, re-inspection...)."""

from typing import Optional

from sqlalchemy import String, Integer, Boolean, Text
from sqlalchemy.orm import Mapped, mapped_column

from qc_inspection.core.database import Base
from qc_inspection.models.base import AuditMixin


class SamplingReason(AuditMixin, Base):
    __tablename__ = "sampling_reasons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<SamplingReason(id={self.id}, name='{self.name}')>"

"""Parts master."""

from typing import Optional

from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from qc_inspection.core.database import Base
from qc_inspection.models.base import AuditMixin


class Part(AuditMixin, Base):
    """Part number with its product family (``model``) and version."""
    __tablename__ = "parts"

    part_no: Mapped[str] = mapped_column(String(30), primary_key=True, comment="Item number")
    product_family: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    version: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    production_site: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    part_site: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    customer: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    product_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Part(part_no='{self.part_no}', product_family='{self.product_family}')>"

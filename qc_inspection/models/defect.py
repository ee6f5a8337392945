"""Defect master and per-inspection defect observations."""

from datetime import datetime
from typing import Optional

from sqlalchemy import String, Integer, Boolean, DateTime, Text, ForeignKey, Index, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from qc_inspection.core.database import Base
from qc_inspection.models.base import AuditMixin


class Defect(AuditMixin, Base):
    """Defect type (Crack, Scratch, Dent...)."""
    __tablename__ = "defects"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Defect(id={self.id}, name='{self.name}')>"


class DefectData(AuditMixin, Base):
    """
    Defect found during an inspection.

    Linked to the inspection by ``inspection_no``; ``ng_qty`` is the
    number of rejected pieces and feeds the DPPM figure of the LAR report.
    """
    __tablename__ = "defectdata"

    __table_args__ = (
        Index("ix_defectdata_inspection_no", "inspection_no"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    inspection_no: Mapped[str] = mapped_column(String(20), nullable=False)
    defect_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )
    station: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    inspector: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    qc_name: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    defect_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("defects.id", ondelete="RESTRICT"),
        nullable=False
    )
    ng_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    tray_no: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    tray_position: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    color: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    defect_detail: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    defect: Mapped["Defect"] = relationship("Defect", lazy="selectin")

    @property
    def defect_name(self) -> Optional[str]:
        return self.defect.name if self.defect is not None else None

    def __repr__(self) -> str:
        return (
            f"<DefectData(id={self.id}, inspection_no='{self.inspection_no}', "
            f"defect_id={self.defect_id}, ng_qty={self.ng_qty})>"
        )

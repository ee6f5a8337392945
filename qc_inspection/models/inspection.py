"""
Inspection record model.

One row per sampling inspection of a production lot at a station
(OQA, SIV, ...). Rows are identified by ``inspection_no`` and counted
per (station, lot) by ``round``.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String, Integer, Boolean, DateTime, ForeignKey, UniqueConstraint, Index, func
)
from sqlalchemy.orm import Mapped, mapped_column

from qc_inspection.core.database import Base
from qc_inspection.models.base import AuditMixin


class InspectionRecord(AuditMixin, Base):
    """
    Sampling inspection record.

    ``inspection_no`` has the shape ``SSSYYMMWW-DDNNNN``:
    station, fiscal year (2 digits), calendar month, fiscal work week,
    calendar day and a 4-digit running counter for that prefix.
    """
    __tablename__ = "inspectiondata"

    __table_args__ = (
        UniqueConstraint("station", "lot_no", "round", name="uq_inspectiondata_station_lot_round"),
        Index("ix_inspectiondata_station_lot", "station", "lot_no"),
        Index("ix_inspectiondata_fy_ww", "fy", "ww"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    station: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        comment="Inspection station code (OQA, SIV...)"
    )

    inspection_no: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        unique=True,
        comment="Inspection number, e.g. OQA260806-100001"
    )

    inspection_no_ref: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        comment="Inspection number of the record this one was derived from"
    )

    inspection_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    fy: Mapped[str] = mapped_column(String(4), nullable=False, comment="Fiscal year, e.g. 2026")
    ww: Mapped[str] = mapped_column(String(2), nullable=False, comment="Fiscal work week, zero padded")
    month_year: Mapped[str] = mapped_column(String(20), nullable=False, comment="Calendar YYYY-MM")

    shift: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)

    lot_no: Mapped[str] = mapped_column(String(30), nullable=False, comment="Production lot number")
    part_site: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    item_no: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    model: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    version: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    fvi_line_no: Mapped[Optional[str]] = mapped_column(
        String(5),
        nullable=True,
        comment="Final visual inspection line"
    )
    mc_line_no: Mapped[Optional[str]] = mapped_column(
        String(5),
        nullable=True,
        comment="Machine line"
    )

    round: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Sampling round for (station, lot_no), starting at 1"
    )

    qc_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fvi_lot_qty: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    general_sampling_qty: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    crack_sampling_qty: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    sampling_reason_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("sampling_reasons.id", ondelete="SET NULL"),
        nullable=True
    )

    judgment: Mapped[Optional[bool]] = mapped_column(
        Boolean,
        nullable=True,
        comment="True = pass, False = fail, NULL = not judged yet"
    )

    def __repr__(self) -> str:
        return (
            f"<InspectionRecord(id={self.id}, inspection_no='{self.inspection_no}', "
            f"station='{self.station}', lot_no='{self.lot_no}', round={self.round})>"
        )

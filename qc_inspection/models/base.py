from datetime import datetime

from sqlalchemy import Integer, DateTime, func
from sqlalchemy.orm import Mapped, mapped_column


class AuditMixin:
    """
    Audit columns shared by every table.

    ``created_by`` / ``updated_by`` hold the requesting user id
    (0 when the caller did not identify itself).
    """

    created_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="User ID that created the row"
    )

    updated_by: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="User ID that last updated the row"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

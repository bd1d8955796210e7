from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, DateTime, Index, Integer, Numeric, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from apr_tracker.infrastructure.db.engine import Base


class PoolSnapshotModel(Base):
    __tablename__ = "pool_snapshots"
    __table_args__ = (
        UniqueConstraint("pool_address", "snapshot_ts", name="uq_pool_snapshots_pool_ts"),
        Index("ix_pool_snapshots_snapshot_ts", "snapshot_ts"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pool_address: Mapped[str] = mapped_column(Text, nullable=False)
    # Epoch seconds, UTC.
    snapshot_ts: Mapped[int] = mapped_column(BigInteger, nullable=False)
    reserve_usd: Mapped[Decimal] = mapped_column(Numeric(38, 12), nullable=False)
    volume_usd: Mapped[Decimal] = mapped_column(Numeric(38, 12), nullable=False)
    block_number: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.current_timestamp()
    )

"""
Migration ledger ORM.

One row per migration name that has been attempted. fingerprint is written once
when the row is created; successful and applied_at are updated in place on retry.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, Boolean, Column, DateTime, String
from schemaledger_common.constants import LEDGER_TABLE
from schemaledger_common.schemas import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEntry(Base):
    __tablename__ = LEDGER_TABLE

    name = Column(String(255), primary_key=True)
    fingerprint = Column(BigInteger, nullable=False)  # CRC-32 of the script body
    applied_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    successful = Column(Boolean, nullable=False)

    def __repr__(self) -> str:
        return (
            f"LedgerEntry(name={self.name!r}, fingerprint={self.fingerprint}, "
            f"successful={self.successful}, applied_at={self.applied_at})"
        )

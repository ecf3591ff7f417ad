from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class MigrationStatusResponse(BaseModel):
    name: str = Field(description="Migration resource name (also its order key)")
    state: str = Field(description="PENDING, APPLIED_OK, APPLIED_FAILED or UNKNOWN")
    fingerprint: Optional[int] = Field(None, description="CRC-32 of the declared script")
    recorded_fingerprint: Optional[int] = Field(
        None, description="Fingerprint stored in the ledger when the entry was created"
    )
    drifted: bool = False
    applied_at: Optional[datetime] = None


class MigrationOverview(BaseModel):
    total: int
    applied: int
    failed: int
    pending: int
    migrations: List[MigrationStatusResponse]

from fastapi import APIRouter, Request

from schemaledger_common.constants import (
    STATE_APPLIED_FAILED,
    STATE_APPLIED_OK,
    STATE_PENDING,
)
from schemaledger.api.migrations.schemas import MigrationOverview, MigrationStatusResponse
from schemaledger.schema_migrations import migration_status


class MigrationsRouter:
    def __init__(self):
        self.router = APIRouter()
        self._setup_routes()

    def _setup_routes(self):
        """Setup the migration status routes"""
        self.router.add_api_route("", self.list_migrations, methods=["GET"])

    async def list_migrations(self, request: Request) -> MigrationOverview:
        """Catalog joined with the ledger, one row per migration."""
        statuses = await migration_status(request.app.state.database, request.app.state.catalog)
        items = [
            MigrationStatusResponse(
                name=status.name,
                state=status.state,
                fingerprint=status.fingerprint,
                recorded_fingerprint=status.recorded_fingerprint,
                drifted=status.drifted,
                applied_at=status.applied_at,
            )
            for status in statuses
        ]
        return MigrationOverview(
            total=len(items),
            applied=sum(1 for item in items if item.state == STATE_APPLIED_OK),
            failed=sum(1 for item in items if item.state == STATE_APPLIED_FAILED),
            pending=sum(1 for item in items if item.state == STATE_PENDING),
            migrations=items,
        )

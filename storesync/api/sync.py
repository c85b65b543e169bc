"""
Tenant ingestion endpoints
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from storesync.api.deps import get_ingestion_service
from storesync.exceptions import (
    CredentialError,
    InvalidShopDomainError,
    MissingCredentialError,
    SyncRunError,
    TenantNotFoundError,
    UnsupportedEntityError,
)
from storesync.services.ingestion_service import IngestionService
from storesync.utils.logger import log

router = APIRouter(prefix="/api/tenants", tags=["sync"])

MAX_LOG_LIMIT = 200


class IngestRequest(BaseModel):
    data_types: Optional[List[str]] = None


def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message, **extra})


@router.post("/{tenant_id}/ingest")
async def ingest_tenant_data(
    tenant_id: int,
    body: Optional[IngestRequest] = None,
    ingestion: IngestionService = Depends(get_ingestion_service),
):
    """
    Run customers, products and orders sync for one tenant (or the requested subset).
    Runs in the request; the response carries per-entity processed counts.
    """
    data_types = body.data_types if body else None

    try:
        results = await ingestion.trigger(tenant_id, data_types)
        return {"success": True, "results": results}

    except TenantNotFoundError:
        return _error(404, "Tenant not found")
    except MissingCredentialError:
        return _error(400, "Tenant not connected to Shopify yet (missing access token)")
    except (InvalidShopDomainError, UnsupportedEntityError) as e:
        return _error(400, str(e))
    except CredentialError as e:
        log.error(f"Credential error for tenant {tenant_id}: {str(e)}")
        return _error(500, "Failed to decrypt tenant access token")
    except SyncRunError as e:
        log.error(f"Data ingestion error for tenant {tenant_id}: {str(e)}")
        return _error(
            500,
            "Data ingestion failed",
            details=e.message,
            entity_type=e.entity_type,
            processed=e.processed,
        )


@router.get("/{tenant_id}/logs")
async def get_sync_logs(
    tenant_id: int,
    limit: Optional[int] = Query(None, ge=1, description="Maximum number of log entries"),
    ingestion: IngestionService = Depends(get_ingestion_service),
):
    """Recent sync runs for a tenant, most recent first"""
    try:
        if limit is not None:
            limit = min(limit, MAX_LOG_LIMIT)
        return await ingestion.list_logs(tenant_id, limit)
    except Exception as e:
        log.error(f"Error fetching sync logs for tenant {tenant_id}: {str(e)}")
        return _error(500, "Failed to fetch logs")

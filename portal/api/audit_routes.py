from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional, Dict, Any
from datetime import datetime
import logging

from portal.core.auth_dependencies import get_admin_user
from portal.services.audit_service import audit_service

router = APIRouter(prefix="/audits", tags=["Audits"], dependencies=[Depends(get_admin_user)])

logger = logging.getLogger(__name__)


@router.get("", status_code=200)
async def list_audits(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=1000),
    action: Optional[str] = Query(default=None),
    actor: Optional[str] = Query(default=None),
    acted: Optional[str] = Query(default=None),
    status: Optional[str] = Query(default=None),
    start_date: Optional[str] = Query(default=None, description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(default=None, description="YYYY-MM-DD")
):
    filters: Dict[str, Any] = {"action": action, "actor": actor, "acted": acted, "status": status}

    if start_date:
        try:
            filters["start_date"] = datetime.strptime(start_date, "%Y-%m-%d")
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid start_date format, expected YYYY-MM-DD")
    if end_date:
        try:
            ed = datetime.strptime(end_date, "%Y-%m-%d")
            filters["end_date"] = ed.replace(hour=23, minute=59, second=59, microsecond=999999)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid end_date format, expected YYYY-MM-DD")

    try:
        return await audit_service.get_audits(skip=skip, limit=limit, filters=filters)
    except Exception as e:
        logger.error(f"Error listing audits: {e}")
        raise HTTPException(status_code=500, detail="Failed to list audit logs")

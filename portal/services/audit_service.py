import logging
from typing import Optional, Dict, Any, List
from datetime import datetime

from portal.database.models.audit_log_model import AuditLog
from portal.database.store import store_guard

logger = logging.getLogger(__name__)


class AuditService:
    """Audit trail of admin actions stored in MongoDB using Beanie."""

    async def create_audit(self, *, action: str, actor: Optional[str] = None, acted: Optional[str] = None,
                           status: str = "successful", detail: Optional[str] = None,
                           timestamp: Optional[datetime] = None) -> AuditLog:
        audit = AuditLog(
            action=action,
            actor=actor,
            acted=acted,
            detail=detail,
            status=status,
            timestamp=timestamp or datetime.utcnow(),
        )
        with store_guard("write an audit log"):
            await audit.insert()
        return audit

    async def record(self, **kwargs) -> Optional[AuditLog]:
        """Best-effort variant used by routes: the action already happened."""
        try:
            return await self.create_audit(**kwargs)
        except Exception:
            logger.exception(f"Failed to write audit log for action {kwargs.get('action')}")
            return None

    async def get_audits(self, skip: int = 0, limit: int = 50, filters: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        if filters:
            for key in ("action", "actor", "acted", "status"):
                if filters.get(key):
                    query[key] = filters[key]
            ts_query = {}
            if filters.get("start_date"):
                ts_query["$gte"] = filters["start_date"]
            if filters.get("end_date"):
                ts_query["$lte"] = filters["end_date"]
            if ts_query:
                query["timestamp"] = ts_query

        with store_guard("query audit logs"):
            total = await AuditLog.find(query).count()
            docs = await AuditLog.find(query).sort("-timestamp").skip(skip).limit(limit).to_list()

        results: List[Dict[str, Any]] = []
        for d in docs:
            results.append({
                "id": str(d.id),
                "action": d.action,
                "actor": d.actor,
                "acted": d.acted,
                "detail": d.detail,
                "timestamp": d.timestamp.isoformat() if d.timestamp else None,
                "status": d.status,
            })

        return {"data": results, "total": total, "skip": skip, "limit": limit}


audit_service = AuditService()

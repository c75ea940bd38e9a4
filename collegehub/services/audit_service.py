"""Audit Service - Records admin and system actions."""

import logging
import uuid
from typing import Any, Dict, Optional

from collegehub.database import get_db
from collegehub.models.audit_log import ActorType, AuditLog
from collegehub.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


class AuditService:
    """
    Audit logging service.

    Logged:
    - Review moderation
    - College create, update, delete and feature changes
    - Application status changes
    - Rating recomputation
    """

    async def log(
        self,
        actor_type: ActorType,
        actor_id: str,
        action: str,
        actor_email: Optional[str] = None,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        before_state: Optional[Dict[str, Any]] = None,
        after_state: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditLog:
        db = get_db()

        entry = AuditLog(
            log_id=str(uuid.uuid4()),
            timestamp=utc_now(),
            actor_type=actor_type,
            actor_id=actor_id,
            actor_email=actor_email,
            action=action,
            target_type=target_type,
            target_id=target_id,
            before_state=before_state,
            after_state=after_state,
            metadata=metadata,
        )

        await db.audit_logs.insert_one(entry.model_dump())
        return entry

    async def log_admin_action(
        self,
        admin_id: str,
        admin_email: str,
        action: str,
        target_type: str,
        target_id: str,
        reason: Optional[str] = None,
        before_state: Optional[Dict[str, Any]] = None,
        after_state: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Log an admin action.

        A failed audit write is logged and never fails the admin action itself.
        """
        try:
            return await self.log(
                actor_type=ActorType.ADMIN,
                actor_id=admin_id,
                actor_email=admin_email,
                action=action,
                target_type=target_type,
                target_id=target_id,
                before_state=before_state,
                after_state=after_state,
                metadata={"reason": reason} if reason else None,
            )
        except Exception as e:
            logger.warning(f"Audit write failed for {action} on {target_type}:{target_id}: {e}")
            return None

    async def log_system_action(
        self,
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """Log an automated action (scripts, maintenance)."""
        try:
            return await self.log(
                actor_type=ActorType.SYSTEM,
                actor_id="system",
                action=action,
                target_type=target_type,
                target_id=target_id,
                metadata=metadata,
            )
        except Exception as e:
            logger.warning(f"Audit write failed for {action}: {e}")
            return None

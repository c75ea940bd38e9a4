"""Audit Log Model - Defines the audit log schema for admin and system actions."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ActorType(str, Enum):
    """Type of actor performing the action."""
    USER = "user"
    ADMIN = "admin"
    SYSTEM = "system"


class AuditLog(BaseModel):
    """
    Audit log model for MongoDB.

    Fields:
    - log_id: Unique UUID for the log entry
    - timestamp: When the action occurred
    - actor_type: user/admin/system
    - actor_id: user_id of the actor, or "system"
    - action: Short action name, e.g. "review_removed"
    - target_type / target_id: What the action touched
    - before_state / after_state: Snapshots for changes
    - metadata: Additional context
    """
    log_id: str = Field(..., description="Unique log ID")
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    actor_type: ActorType
    actor_id: str
    actor_email: Optional[str] = None
    action: str
    target_type: Optional[str] = None
    target_id: Optional[str] = None
    before_state: Optional[dict] = None
    after_state: Optional[dict] = None
    metadata: Optional[dict] = None

    model_config = ConfigDict(use_enum_values=True)

import uuid, json
from sqlalchemy.orm import Session
from app.models.audit_log import AuditLog
from app.models.user import User

def log_audit(db: Session, actor: User | None, action: str, entity_type: str, entity_id: str,
              details: dict | None = None, route_id: str | None = None):
    """Stage an audit row in the caller's transaction; the caller commits."""
    db.add(AuditLog(
        id=str(uuid.uuid4()),
        actor_user_id=actor.id if actor else "system",
        actor_role=actor.role if actor else "system",
        action=action,
        route_id=route_id if route_id is not None else (entity_id if entity_type == "route" else None),
        entity_type=entity_type,
        entity_id=entity_id,
        details_json=json.dumps(details or {}, ensure_ascii=False),
    ))

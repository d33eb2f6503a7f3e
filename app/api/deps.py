from fastapi import Depends, HTTPException
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from app.db.session import get_db
from app.core.security import decode_token
from app.models.route import Route
from app.models.user import User

bearer = HTTPBearer(auto_error=False)

def get_current_user(
    creds: HTTPAuthorizationCredentials | None = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    if not creds:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        payload = decode_token(creds.credentials)
    except Exception:
        raise HTTPException(status_code=401, detail="Invalid token")
    user_id = payload.get("sub")
    user = db.get(User, user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=401, detail="User not found or inactive")
    return user

def require_roles(*roles: str):
    def _guard(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=403, detail="Forbidden")
        return user
    return _guard

def managed_route(
    route_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(require_roles("admin", "operator")),
) -> Route:
    """The route addressed by the path, if the caller may manage it (admins: any; operators: their own)."""
    r = db.get(Route, route_id)
    if not r:
        raise HTTPException(status_code=404, detail="Route not found")
    if user.role == "operator" and r.operator_id != user.operator_id:
        raise HTTPException(status_code=403, detail="Not authorized for this route")
    return r

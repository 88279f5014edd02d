from datetime import datetime, timedelta, timezone
from typing import Optional
from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session
from companion.config import settings
from companion.database import get_db
from companion.repository import EntryRepository, RepositoryRegistry

security = HTTPBearer(auto_error=False)


def require_db(db: Optional[Session] = Depends(get_db)) -> Session:
    """Remote-only endpoints: fail with 503 in local-only mode."""
    if db is None:
        raise HTTPException(status_code=503, detail="الحفظ السحابي غير مفعل على هذا الخادم")
    return db


def decode_access_token(token: str) -> str:
    """Return the identity (`sub`) carried by a token."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise HTTPException(status_code=401, detail="رمز الدخول غير صالح أو منتهي الصلاحية")
    user_id = payload.get("sub")
    if user_id is None:
        raise HTTPException(status_code=401, detail="رمز الدخول غير صالح")
    return str(user_id)


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(require_db),
):
    """Decode JWT and return the current user."""
    from companion.models.user import User

    if credentials is None:
        raise HTTPException(status_code=401, detail="يجب تسجيل الدخول أولاً")

    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, int(user_id))
    if not user:
        raise HTTPException(status_code=404, detail="المستخدم غير موجود")
    return user


def require_admin(user=Depends(get_current_user)):
    """Admin-only endpoints."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="ليس لديك صلاحية للوصول")
    return user


def get_identity(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> Optional[str]:
    """Identity from an optional bearer token; None means the device identity."""
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


def get_registry(request: Request) -> RepositoryRegistry:
    return request.app.state.registry


def get_repository(
    identity: Optional[str] = Depends(get_identity),
    registry: RepositoryRegistry = Depends(get_registry),
) -> EntryRepository:
    """Loaded repository for the caller's identity."""
    return registry.get(identity)


def create_access_token(user_id: int) -> str:
    """Create a JWT access token."""
    expire = datetime.now(timezone.utc) + timedelta(seconds=settings.JWT_ACCESS_TOKEN_EXPIRES)
    # Convert datetime to Unix timestamp (int) for JSON serialization
    payload = {"sub": str(user_id), "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

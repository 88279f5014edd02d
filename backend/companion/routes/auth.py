import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session
from companion.config import settings as app_settings
from companion.dependencies import get_current_user, create_access_token, require_db
from companion.models.user import User
from companion.schemas.user import UserRegister, UserLogin, user_to_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _is_primary_admin(email: str) -> bool:
    return email == app_settings.ADMIN_EMAIL.strip().lower()


@router.post("/register", status_code=201)
def register(data: UserRegister, db: Session = Depends(require_db)):
    """Register a new remote identity."""
    if data.password != data.confirm_password:
        raise HTTPException(400, detail="كلمتا المرور غير متطابقتين")

    existing = db.query(User).filter_by(email=data.email).first()
    if existing:
        raise HTTPException(400, detail="البريد الإلكتروني مسجل مسبقاً")

    phone = data.phone.strip() if data.phone else None
    user = User(
        full_name=data.full_name.strip(),
        email=data.email,
        phone=phone or None,
        is_admin=_is_primary_admin(data.email),
    )
    user.set_password(data.password)

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    return {
        "message": "تم التسجيل بنجاح",
        "token": create_access_token(user.id),
        "user": user_to_response(user),
    }


@router.post("/login")
def login(data: UserLogin, request: Request, db: Session = Depends(require_db)):
    """Login with email and password."""
    user = db.query(User).filter_by(email=data.email).first()
    if not user or not user.check_password(data.password):
        raise HTTPException(401, detail="بيانات الدخول غير صحيحة")

    # Primary admin is promoted on login if the flag was lost
    if _is_primary_admin(user.email) and not user.is_admin:
        logger.info("Promoting user %s to admin", user.id)
        user.is_admin = True
        db.commit()
        db.refresh(user)

    # Drop any cached collection so the next read reloads from the remote store
    request.app.state.registry.discard(user.identity)

    return {"token": create_access_token(user.id), "user": user_to_response(user)}


@router.get("/me")
def get_me(user: User = Depends(get_current_user)):
    """Get current user profile with a refreshed token."""
    return {"user": user_to_response(user), "token": create_access_token(user.id)}

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from companion.config import settings as app_settings
from companion.dependencies import get_current_user, require_db
from companion.models.notification import Notification
from companion.models.user import User
from companion.schemas.notification import notification_to_response

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
def get_notifications(
    user: User = Depends(get_current_user),
    db: Session = Depends(require_db),
):
    """Latest notifications for the current user, newest first."""
    notifications = (
        db.query(Notification)
        .filter_by(user_id=user.id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(app_settings.NOTIFICATIONS_LIMIT)
        .all()
    )
    unread = db.query(Notification).filter_by(user_id=user.id, is_read=False).count()
    return {
        "notifications": [notification_to_response(n) for n in notifications],
        "unread_count": unread,
    }


@router.post("/read-all")
def mark_all_read(
    user: User = Depends(get_current_user),
    db: Session = Depends(require_db),
):
    updated = (
        db.query(Notification)
        .filter_by(user_id=user.id, is_read=False)
        .update({Notification.is_read: True}, synchronize_session=False)
    )
    db.commit()
    return {"message": "تم تعليم الكل كمقروء", "updated": updated}


@router.post("/{notification_id}/read")
def mark_read(
    notification_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(require_db),
):
    notification = db.query(Notification).filter_by(id=notification_id, user_id=user.id).first()
    if not notification:
        raise HTTPException(404, detail="الإشعار غير موجود")

    notification.is_read = True
    db.commit()
    db.refresh(notification)
    return {"notification": notification_to_response(notification)}

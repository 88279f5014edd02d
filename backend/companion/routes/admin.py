from datetime import datetime, timedelta
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from companion.config import settings as app_settings
from companion.dependencies import require_admin, require_db
from companion.models.daily_entry import DailyEntry
from companion.models.notification import Notification
from companion.models.user import User
from companion.schemas.notification import NotificationSend
from companion.schemas.user import mask_phone
from companion.utils.stats import engagement_summary

router = APIRouter(prefix="/api/admin", tags=["admin"])

USER_FILTERS = ("all", "high-streak", "low-engagement", "new")


def _check_filter(name: str) -> str:
    if name not in USER_FILTERS:
        raise HTTPException(400, detail="نوع التصفية غير معروف")
    return name


def _engagement_by_user(db: Session) -> dict:
    """identity -> {date: {"submitted": bool}} over every remote row."""
    entry_map = {}
    for user_id, date_ymd, submitted in db.query(DailyEntry.user_id, DailyEntry.date_ymd, DailyEntry.submitted):
        entry_map.setdefault(user_id, {})[date_ymd] = {"submitted": bool(submitted)}
    return entry_map


def matches_filter(user: User, summary: dict, name: str, now: datetime) -> bool:
    if name == "high-streak":
        return summary["streak"] >= app_settings.HIGH_STREAK_MIN
    if name == "low-engagement":
        return summary["submitted_count"] <= app_settings.LOW_ENGAGEMENT_MAX
    if name == "new":
        return user.created_at is not None and user.created_at >= now - timedelta(days=app_settings.NEW_USER_DAYS)
    return True


def _filtered_users(db: Session, name: str) -> list:
    """(user, summary) pairs matching `name`, newest accounts first."""
    entry_map = _engagement_by_user(db)
    now = datetime.utcnow()
    pairs = []
    for user in db.query(User).order_by(User.created_at.desc()).all():
        summary = engagement_summary(entry_map.get(user.identity, {}))
        if matches_filter(user, summary, name, now):
            pairs.append((user, summary))
    return pairs


@router.get("/users")
def get_users_overview(
    filter: str = Query("all"),
    admin: User = Depends(require_admin),
    db: Session = Depends(require_db),
):
    """Every profile with entry totals and current streak."""
    pairs = _filtered_users(db, _check_filter(filter))
    users = [
        {
            "id": user.id,
            "full_name": user.full_name,
            "email": user.email,
            "masked_phone": mask_phone(user.phone),
            "is_admin": bool(user.is_admin),
            "created_at": user.created_at.isoformat() if user.created_at else None,
            **summary,
        }
        for user, summary in pairs
    ]
    return {
        "users": users,
        "total": len(users),
        "active": sum(1 for row in users if row["submitted_count"] > 0),
    }


@router.post("/notifications", status_code=201)
def send_notification(
    data: NotificationSend,
    admin: User = Depends(require_admin),
    db: Session = Depends(require_db),
):
    """Send a notification to one user, or to every user matching a filter."""
    if not data.title or not data.body:
        raise HTTPException(400, detail="العنوان ونص الإشعار مطلوبان")

    if data.user_id is not None:
        user = db.get(User, data.user_id)
        if not user:
            raise HTTPException(404, detail="المستخدم غير موجود")
        recipients = [user]
    else:
        recipients = [user for user, _ in _filtered_users(db, _check_filter(data.filter))]

    for user in recipients:
        db.add(Notification(user_id=user.id, title=data.title, body=data.body, is_read=False))
    db.commit()

    return {"message": "تم إرسال الإشعار", "sent": len(recipients)}

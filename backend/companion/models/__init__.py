from companion.models.user import User
from companion.models.daily_entry import DailyEntry
from companion.models.notification import Notification

__all__ = ["User", "DailyEntry", "Notification"]

from companion.routes.auth import router as auth_router
from companion.routes.entries import router as entries_router
from companion.routes.calendar import router as calendar_router
from companion.routes.reports import router as reports_router
from companion.routes.notifications import router as notifications_router
from companion.routes.admin import router as admin_router

all_routers = [
    auth_router,
    entries_router,
    calendar_router,
    reports_router,
    notifications_router,
    admin_router,
]

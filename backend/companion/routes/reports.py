from fastapi import APIRouter, Depends, Query
from companion.dependencies import get_repository
from companion.repository import EntryRepository
from companion.routes.calendar import resolve_anchor
from companion.utils.dates import format_hijri_month_year
from companion.utils.lunar_month import build_lunar_month_days
from companion.utils.stats import month_report, streak

router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.get("/month")
async def get_month_report(
    anchor: str = Query(None),
    repo: EntryRepository = Depends(get_repository),
):
    """Compliance report for the lunar month containing `anchor`."""
    days = build_lunar_month_days(resolve_anchor(anchor))
    report = month_report(repo.entries, days)
    report["title"] = format_hijri_month_year(days[0])
    report["first_day"] = days[0]
    report["last_day"] = days[-1]
    return report


@router.get("/streak")
async def get_streak(
    from_date: str = Query(None),
    repo: EntryRepository = Depends(get_repository),
):
    """Current run of submitted days ending at `from_date` (default today)."""
    key = resolve_anchor(from_date)
    return {"date": key, "streak": streak(repo.entries, key)}

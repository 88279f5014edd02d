from fastapi import APIRouter, HTTPException, Query
from companion.utils.dates import (
    format_hijri,
    format_hijri_month_year,
    is_valid_ymd,
    lunar_parts,
    today_ymd,
)
from companion.utils.lunar_month import lunar_month_view

router = APIRouter(prefix="/api/calendar", tags=["calendar"])


def resolve_anchor(anchor: str | None) -> str:
    """Anchor date for month views; defaults to today."""
    if anchor is None:
        return today_ymd()
    if not is_valid_ymd(anchor):
        raise HTTPException(400, detail="صيغة التاريخ غير صحيحة (YYYY-MM-DD)")
    return anchor


@router.get("/today")
def get_today():
    """Today's civil key with its Hijri rendering."""
    key = today_ymd()
    parts = lunar_parts(key)
    return {
        "date": key,
        "hijri": format_hijri(key),
        "hijri_month": format_hijri_month_year(key),
        "lunar": parts._asdict(),
    }


@router.get("/month")
def get_month(anchor: str = Query(None)):
    """Lunar month containing `anchor`, with neighbouring month anchors."""
    return lunar_month_view(resolve_anchor(anchor))

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from companion.dependencies import get_repository
from companion.repository import EntryRepository
from companion.schemas.entry import EntryUpdate, entry_to_response
from companion.utils.dates import is_valid_ymd
from companion.utils.entries import EntryLockedError

router = APIRouter(prefix="/api/entries", tags=["entries"])


def _valid_key(date_ymd: str) -> str:
    if not is_valid_ymd(date_ymd):
        raise HTTPException(400, detail="صيغة التاريخ غير صحيحة (YYYY-MM-DD)")
    return date_ymd


def _locked(exc: EntryLockedError) -> HTTPException:
    return HTTPException(409, detail=f"تم إرسال يوم {exc.date_ymd}. افتح القفل قبل التعديل")


@router.get("")
async def get_all_entries(repo: EntryRepository = Depends(get_repository)):
    """Every stored entry for the caller's identity."""
    return {"entries": dict(repo.entries), "online": repo.is_online}


@router.get("/{date_ymd}")
async def get_entry(date_ymd: str, repo: EntryRepository = Depends(get_repository)):
    """Entry for one day; an empty default when nothing is stored."""
    key = _valid_key(date_ymd)
    response = entry_to_response(key, repo.get_entry(key), stored=repo.has_entry(key))
    response["state"] = repo.state(key).value
    return response


@router.put("/{date_ymd}")
async def save_entry(
    date_ymd: str,
    data: EntryUpdate,
    background_tasks: BackgroundTasks,
    editing: bool = Query(False),
    repo: EntryRepository = Depends(get_repository),
):
    """Replace a day's record. Locked days need `editing=true` (edit session)."""
    key = _valid_key(date_ymd)
    try:
        entry = repo.update_entry(key, data.to_entry(), editing=editing, schedule=background_tasks.add_task)
    except EntryLockedError as e:
        raise _locked(e)
    return {"message": "تم حفظ اليوم", **entry_to_response(key, entry)}


@router.post("/{date_ymd}/submit")
async def submit_entry(
    date_ymd: str,
    background_tasks: BackgroundTasks,
    repo: EntryRepository = Depends(get_repository),
):
    """Lock a day's record."""
    key = _valid_key(date_ymd)
    entry = repo.submit(key, schedule=background_tasks.add_task)
    return {"message": "تم إرسال اليوم", **entry_to_response(key, entry)}


@router.post("/{date_ymd}/unlock")
async def unlock_entry(
    date_ymd: str,
    background_tasks: BackgroundTasks,
    repo: EntryRepository = Depends(get_repository),
):
    """Return a submitted day to draft."""
    key = _valid_key(date_ymd)
    entry = repo.unlock(key, schedule=background_tasks.add_task)
    return {"message": "تم فتح اليوم للتعديل", **entry_to_response(key, entry)}


@router.delete("/{date_ymd}")
async def clear_entry(
    date_ymd: str,
    background_tasks: BackgroundTasks,
    editing: bool = Query(False),
    repo: EntryRepository = Depends(get_repository),
):
    """Delete a day's record entirely."""
    key = _valid_key(date_ymd)
    try:
        repo.clear_entry(key, editing=editing, schedule=background_tasks.add_task)
    except EntryLockedError as e:
        raise _locked(e)
    return {"message": "تم حذف بيانات اليوم", "date": key}

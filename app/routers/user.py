# app/routers/user.py
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app import config, crud
from app.dependencies import get_db, get_user_id
from app.schemas import TimezoneRead, TimezoneUpdate
from app.time_utils import TIMEZONE_PRESETS, find_preset_for_offset, format_utc_offset

router = APIRouter(
    prefix="/user",
    tags=["User"],
)


def _timezone_read(user_id: str, preset_id, offset_minutes: int) -> TimezoneRead:
    preset = TIMEZONE_PRESETS.get(preset_id) if preset_id else find_preset_for_offset(offset_minutes)
    return TimezoneRead(
        user_id=user_id,
        timezone=preset.id if preset else None,
        name=preset.name if preset else None,
        offset_minutes=offset_minutes,
        utc_offset=format_utc_offset(offset_minutes),
    )


@router.get("/timezones", response_model=List[TimezoneRead])
def list_timezones(user_id: str = Depends(get_user_id)):
    return [_timezone_read(user_id, preset.id, preset.offset) for preset in TIMEZONE_PRESETS.values()]


@router.get("/timezone", response_model=TimezoneRead)
def get_timezone(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    settings = crud.get_user_settings(db, user_id)
    if settings is None:
        return _timezone_read(user_id, None, config.DEFAULT_TIMEZONE_OFFSET_MINUTES)
    return _timezone_read(user_id, settings.timezone_id, settings.timezone_offset_minutes)


@router.put("/timezone", response_model=TimezoneRead)
def set_timezone(
    body: TimezoneUpdate,
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    settings = crud.set_user_timezone(db, user_id, preset_id=body.timezone, offset_minutes=body.offset_minutes)
    return _timezone_read(user_id, settings.timezone_id, settings.timezone_offset_minutes)

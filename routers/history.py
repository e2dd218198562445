from datetime import datetime
from typing import Optional, Union
from fastapi import APIRouter, Query
from starlette import status
from schemas.history_schemas import HistoryCount, HistoryItem, HistoryQuery
from services.history_service import HistoryService
from utils.deps import db_dependency, user_dependency


router = APIRouter(
    prefix="/history",
    tags=["history"]
)


@router.get("", response_model=Union[HistoryCount, list[HistoryItem]], status_code=status.HTTP_200_OK)
async def get_history(user: user_dependency, db: db_dependency,
                      skip: int = Query(0),
                      limit: int = Query(10),
                      sort: Optional[str] = Query(None, description="requestedAt, lat or lon; prefix '-' for descending"),
                      from_: Optional[datetime] = Query(None, alias="from"),
                      to: Optional[datetime] = Query(None),
                      lat: Optional[float] = Query(None),
                      lon: Optional[float] = Query(None),
                      count: bool = Query(False)):
    """
    The caller's weather lookups, most recent first by default.
    With count=true only the number of matching entries is returned.
    """
    query = HistoryQuery(skip=skip, limit=limit, sort=sort, from_=from_, to=to, lat=lat, lon=lon)

    if count:
        return HistoryCount(total=HistoryService.count_entries(db, user.id, query))

    return HistoryService.list_entries(db, user.id, query)

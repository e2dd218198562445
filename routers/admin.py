from fastapi import APIRouter, status
from services.cleanup import purge_expired
from utils.deps import admin_dependency, db_dependency, settings_dependency
from utils.logger import get_logger

logger = get_logger(__name__)


router = APIRouter(
    prefix="/admin",
    tags=["admin"]
)


@router.post("/maintenance/purge", status_code=status.HTTP_200_OK)
async def purge(admin: admin_dependency, db: db_dependency, app_settings: settings_dependency):
    """
    Run the expiry sweep now instead of waiting for the background task.
    """
    purged = purge_expired(db, app_settings)

    logger.info("Manual purge requested", extra={"user_id": admin.id, **purged})
    return {"purged": purged}

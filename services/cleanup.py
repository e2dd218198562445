import asyncio
from datetime import datetime
from typing import Callable
from sqlalchemy import delete
from sqlalchemy.orm import Session
from core.config import Settings
from models.revoked_tokens import RevokedToken
from services.weather_cache import WeatherCacheStore
from utils.clock import utcnow
from utils.logger import get_logger

logger = get_logger(__name__)


def purge_expired(db: Session, settings: Settings, now: datetime | None = None) -> dict:
    """
    Hard-deletes weather readings past the stale tolerance and revocation
    records past their token's expiry.
    """
    now = now or utcnow()

    readings = WeatherCacheStore(db, settings).purge_expired(now)

    result = db.execute(delete(RevokedToken).where(RevokedToken.expires_at <= now))
    db.commit()
    revocations = result.rowcount or 0

    if readings or revocations:
        logger.info(
            "Expired records purged",
            extra={"weather_readings": readings, "revoked_tokens": revocations}
        )
    return {"weather_readings": readings, "revoked_tokens": revocations}


class ExpirySweeper:
    """Runs purge_expired every CLEANUP_INTERVAL_SECONDS until stopped."""

    def __init__(self, session_factory: Callable[[], Session], settings: Settings):
        self._session_factory = session_factory
        self._settings = settings
        self._interval = max(1, settings.CLEANUP_INTERVAL_SECONDS)
        self._task: asyncio.Task | None = None
        self._stop: asyncio.Event | None = None

    def _run_once(self) -> dict:
        db = self._session_factory()
        try:
            return purge_expired(db, self._settings)
        finally:
            db.close()

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._stop = asyncio.Event()
        self._task = asyncio.create_task(self._loop(), name="expiry-sweeper")
        logger.info("Expiry sweeper started", extra={"interval_seconds": self._interval})

    async def stop(self) -> None:
        if self._task is None:
            return
        self._stop.set()
        task = self._task
        self._task = None
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Expiry sweeper stopped")

    async def _loop(self) -> None:
        while not self._stop.is_set():
            try:
                await asyncio.to_thread(self._run_once)
            except Exception as exc:
                logger.error(f"Expiry sweep failed: {exc}", exc_info=True)
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=self._interval)
            except asyncio.TimeoutError:
                continue

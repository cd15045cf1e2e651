"""
Periodic sweep marking overdue signature requests as expired.

Validation already expires a request lazily when its link is opened; the sweep
keeps request lists accurate for links that are never opened.
"""
import logging
from datetime import datetime, timezone
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.db import AsyncSessionLocal
from app.models.enums import SignatureRequestStatus
from app.models.signature import SignatureRequest

logger = logging.getLogger(__name__)


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps (e.g. from SQLite) as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_expired(signature_request: SignatureRequest, now: datetime | None = None) -> bool:
    now = now or datetime.now(timezone.utc)
    return now > as_utc(signature_request.expires_at)


async def expire_stale_requests(db: AsyncSession, now: datetime | None = None) -> int:
    """
    Mark every PENDING request past its expiry as EXPIRED.

    Returns:
        Number of requests updated
    """
    now = now or datetime.now(timezone.utc)
    result = await db.execute(
        update(SignatureRequest)
        .where(
            SignatureRequest.status == SignatureRequestStatus.PENDING,
            SignatureRequest.expires_at < now,
        )
        .values(status=SignatureRequestStatus.EXPIRED)
    )
    await db.commit()
    return result.rowcount or 0


async def run_expiry_sweep() -> None:
    """Scheduler entry point; owns its own session."""
    try:
        async with AsyncSessionLocal() as db:
            count = await expire_stale_requests(db)
        if count:
            logger.info(f"Expired {count} stale signature request(s)")
    except Exception as e:
        logger.error(f"Signature expiry sweep failed: {e}")

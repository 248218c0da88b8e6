# wholesale_orders/utils/db_service.py

from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from wholesale_orders.errors import OrderError, ConcurrentModification, StorageError


@asynccontextmanager
async def transaction(db: AsyncSession, log, target: str, data: dict | None = None):
    """
    Read-validate-write unit: commits on success, rolls back on any failure.

    - business errors are re-raised as they are
    - a stale version (row changed since it was read) becomes ConcurrentModification
    - any other store failure becomes StorageError
    """
    try:
        yield db
        await db.commit()
    except OrderError:
        await db.rollback()
        raise
    except StaleDataError as e:
        await db.rollback()
        await log.log_warning(target, f"Stale write: {e}", data)
        raise ConcurrentModification("Record was modified by another request, reload and retry", data)
    except SQLAlchemyError as e:
        await db.rollback()
        await log.log_error(target, f"SQL Error: {e}", data)
        raise StorageError("Storage failure, nothing was written", data)


def ensure_version(record, expected_version: int | None) -> None:
    """Optimistic check against a version the caller read earlier."""
    if expected_version is not None and record.version != expected_version:
        raise ConcurrentModification(
            f"{type(record).__name__} {record.id} is at version {record.version}, not {expected_version}",
            {"id": record.id, "version": record.version, "expected_version": expected_version},
        )

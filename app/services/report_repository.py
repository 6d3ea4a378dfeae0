"""Repository for report and saved-search persistence."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PersistenceError
from app.models.db_models import ReportRecord
from app.models.schemas import Paper, RecordType, StoredRecord

logger = logging.getLogger(__name__)


def _cause(e: SQLAlchemyError) -> str:
    """Class name of the driver error, without statement or parameters."""
    orig = getattr(e, "orig", None)
    return type(orig if orig is not None else e).__name__


class ReportRepository:
    """Async repository over the ``reports`` relation.

    Each save is a single insert committed on its own; nothing spans more
    than one statement.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_report(self, owner: str | None, title: str, content: str) -> StoredRecord:
        """Insert a generated report owned by ``owner``."""
        self._require_owner(owner)
        record = ReportRecord(user_id=owner, title=title, content=content)
        return await self._insert(record, kind="report")

    async def save_search(
        self,
        owner: str | None,
        title: str,
        summary: str,
        papers: list[Paper],
    ) -> StoredRecord:
        """Insert a saved search (consolidated summary plus its papers)."""
        self._require_owner(owner)
        record = ReportRecord(
            user_id=owner,
            title=title,
            content=summary,
            papers=[p.model_dump() for p in papers],
            type="search",
        )
        return await self._insert(record, kind="search")

    async def list_for_owner(
        self, owner: str | None, kind: RecordType | None = None
    ) -> list[StoredRecord]:
        """Return the owner's records, newest first, optionally of one kind."""
        self._require_owner(owner)
        stmt = select(ReportRecord).where(ReportRecord.user_id == owner)
        if kind is not None:
            stmt = stmt.where(ReportRecord.type == kind)
        stmt = stmt.order_by(ReportRecord.created_at.desc())
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.exception("Listing records failed")
            raise PersistenceError("Failed to load reports", details=_cause(e)) from e
        return [r.to_pydantic() for r in result.scalars().all()]

    @staticmethod
    def _require_owner(owner: str | None) -> None:
        if not owner:
            raise PersistenceError(
                "No authenticated user found",
                missing_owner=True,
            )

    async def _insert(self, record: ReportRecord, kind: str) -> StoredRecord:
        self.session.add(record)
        try:
            await self.session.commit()
            await self.session.refresh(record)
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.exception("Saving %s failed", kind)
            raise PersistenceError(
                f"Failed to save {kind}: database error", details=_cause(e)
            ) from e
        logger.info("Saved %s %s for user %s", kind, record.id, record.user_id)
        return record.to_pydantic()

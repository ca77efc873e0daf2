from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Sequence

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from voucher_api.models import Voucher
from voucher_api.services.errors import PersistenceError

logger = structlog.get_logger(__name__)

SORTABLE_FIELDS = {
    "id": Voucher.id,
    "code": Voucher.code,
    "voucher_code": Voucher.code,
    "discount_percent": Voucher.discount_percent,
    "expiry_date": Voucher.expiry_date,
    "created_at": Voucher.created_at,
    "updated_at": Voucher.updated_at,
}


class VoucherRepository:
    """SQLAlchemy-backed storage for vouchers.

    Reads only see active (not soft-deleted) rows unless asked otherwise.
    Database failures are rolled back and surfaced as ``PersistenceError``.
    """

    def __init__(self, db: Session):
        self.db = db

    def find_paged(
        self,
        page: int,
        limit: int,
        search: str | None = None,
        sort_by: str | None = None,
        sort_order: str = "desc",
    ) -> tuple[list[Voucher], int]:
        stmt = select(Voucher).where(Voucher.deleted_at.is_(None))
        if search:
            stmt = stmt.where(func.lower(Voucher.code).contains(search.lower(), autoescape=True))

        count_stmt = select(func.count()).select_from(stmt.subquery())

        column = SORTABLE_FIELDS.get(sort_by or "")
        if column is None:
            stmt = stmt.order_by(Voucher.created_at.desc(), Voucher.id.desc())
        elif sort_order == "asc":
            stmt = stmt.order_by(column.asc(), Voucher.id.asc())
        else:
            stmt = stmt.order_by(column.desc(), Voucher.id.desc())

        offset = (page - 1) * limit
        stmt = stmt.offset(offset).limit(limit)

        with self._guard("find_paged"):
            total = self.db.execute(count_stmt).scalar_one()
            vouchers = list(self.db.execute(stmt).scalars().all())
        return vouchers, total

    def find_by_id(self, voucher_id: int, *, include_deleted: bool = False) -> Voucher | None:
        stmt = select(Voucher).where(Voucher.id == voucher_id)
        if not include_deleted:
            stmt = stmt.where(Voucher.deleted_at.is_(None))
        with self._guard("find_by_id"):
            return self.db.execute(stmt).scalar_one_or_none()

    def find_by_code(self, code: str) -> Voucher | None:
        stmt = select(Voucher).where(Voucher.code == code, Voucher.deleted_at.is_(None))
        with self._guard("find_by_code"):
            return self.db.execute(stmt).scalars().first()

    def existing_codes_among(self, codes: Sequence[str]) -> list[str]:
        if not codes:
            return []
        stmt = select(Voucher.code).where(Voucher.code.in_(list(codes)), Voucher.deleted_at.is_(None))
        with self._guard("existing_codes_among"):
            return list(self.db.execute(stmt).scalars().all())

    def insert_one(self, voucher: Voucher) -> Voucher:
        with self._guard("insert_one"):
            self.db.add(voucher)
            self.db.commit()
            self.db.refresh(voucher)
        return voucher

    def insert_many(self, vouchers: Sequence[Voucher]) -> list[Voucher]:
        if not vouchers:
            return []
        with self._guard("insert_many"):
            self.db.add_all(vouchers)
            self.db.commit()
        return list(vouchers)

    def update_one(self, voucher: Voucher) -> Voucher:
        # merge() inserts when the primary key is unknown; callers must check existence first.
        with self._guard("update_one"):
            merged = self.db.merge(voucher)
            self.db.commit()
            self.db.refresh(merged)
        return merged

    def soft_delete_by_id(self, voucher_id: int) -> None:
        stmt = (
            update(Voucher)
            .where(Voucher.id == voucher_id, Voucher.deleted_at.is_(None))
            .values(deleted_at=datetime.now(timezone.utc))
        )
        with self._guard("soft_delete_by_id"):
            self.db.execute(stmt)
            self.db.commit()

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("voucher_repository_error", operation=operation, error=str(exc))
            raise PersistenceError(f"failed to {operation.replace('_', ' ')}", operation=operation) from exc

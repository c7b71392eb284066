# magpie/offline/store.py
import json
import logging
import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from magpie.errors import NotFoundError
from magpie.offline.models import LocalBase, LocalBook, LocalChange, LocalMetadata
from magpie.sa.database import Database
from magpie.utils.isbn import require_isbn

logger = logging.getLogger(__name__)

LAST_SYNC_KEY = "lastSyncAt"


class ChangeAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class ChangeEntry:
    """A queued local mutation, as replayed against the remote catalog."""
    id: str
    isbn: str
    action: ChangeAction
    data: Dict[str, Any] = field(hash=False)
    timestamp: datetime
    synced: bool = False

    @classmethod
    def from_row(cls, row: LocalChange) -> "ChangeEntry":
        return cls(
            id=row.id,
            isbn=row.isbn,
            action=ChangeAction(row.action),
            data=json.loads(json.dumps(row.data)),
            timestamp=row.timestamp,
            synced=row.synced,
        )

    def to_wire(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "isbn": self.isbn,
            "action": self.action.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
            "synced": self.synced,
        }


def _jsonable(record: Dict[str, Any]) -> Dict[str, Any]:
    return json.loads(json.dumps(record, default=lambda value: value.isoformat() if isinstance(value, datetime) else str(value)))


def _database_url(path: str) -> str:
    if "://" in path:
        return path
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    return f"sqlite:///{path}"


class LocalStore:
    """Device-local record cache and change log.

    Every local mutation writes the record and exactly one change entry in
    the same transaction, with no network involved. Change entries are
    append-only: after insert only the synced flag moves, false to true.
    """

    def __init__(self, path: str):
        self.database = Database(_database_url(path), base=LocalBase)
        self.database.init_db()

    # === Record Store ===

    def upsert_record(self, record: Dict[str, Any]) -> None:
        """Store a record by key, replacing any previous copy. Clears needs_sync."""
        isbn = require_isbn(record.get("isbn", ""))
        with self.database.get_db() as session:
            session.merge(LocalBook(isbn=isbn, data=_jsonable({**record, "isbn": isbn}), needs_sync=False))

    def get_record(self, isbn: str) -> Optional[Dict[str, Any]]:
        with self.database.get_db() as session:
            row = session.get(LocalBook, isbn)
            return dict(row.data) if row else None

    def list_records(self) -> List[Dict[str, Any]]:
        with self.database.get_db() as session:
            rows = session.query(LocalBook).order_by(LocalBook.isbn).all()
            return [dict(row.data) for row in rows]

    def pending_isbns(self) -> List[str]:
        """Keys of records with local edits not yet confirmed remotely."""
        with self.database.get_db() as session:
            rows = session.query(LocalBook.isbn).filter(LocalBook.needs_sync.is_(True)).order_by(LocalBook.isbn)
            return [isbn for (isbn,) in rows]

    def remove_record(self, isbn: str) -> bool:
        with self.database.get_db() as session:
            return session.query(LocalBook).filter(LocalBook.isbn == isbn).delete() > 0

    def search_records(self, query: str) -> List[Dict[str, Any]]:
        needle = query.lower()
        return [
            record for record in self.list_records()
            if needle in (record.get("title") or "").lower()
            or any(needle in author.lower() for author in record.get("authors") or [])
            or needle in (record.get("genre") or "").lower()
            or query in record["isbn"]
        ]

    # === Change Log ===

    def _append(self, session: Session, action: ChangeAction, isbn: str, payload: Dict[str, Any]) -> ChangeEntry:
        row = LocalChange(
            id=uuid.uuid4().hex,
            isbn=isbn,
            action=ChangeAction(action).value,
            data=_jsonable(payload),
            timestamp=datetime.now(UTC),
            synced=False,
        )
        session.add(row)
        session.flush()
        return ChangeEntry.from_row(row)

    def append_change(self, action: ChangeAction, isbn: str, payload: Dict[str, Any]) -> ChangeEntry:
        with self.database.get_db() as session:
            return self._append(session, action, isbn, payload)

    def list_unsynced(self) -> List[ChangeEntry]:
        """Pending change entries in creation order."""
        with self.database.get_db() as session:
            rows = (
                session.query(LocalChange)
                .filter(LocalChange.synced.is_(False))
                .order_by(LocalChange.seq)
                .all()
            )
            return [ChangeEntry.from_row(row) for row in rows]

    def list_changes(self) -> List[ChangeEntry]:
        with self.database.get_db() as session:
            rows = session.query(LocalChange).order_by(LocalChange.seq).all()
            return [ChangeEntry.from_row(row) for row in rows]

    def mark_synced(self, change_id: str) -> bool:
        """Flag a change as confirmed remotely. Marking twice is harmless."""
        with self.database.get_db() as session:
            row = session.query(LocalChange).filter(LocalChange.id == change_id).one_or_none()
            if row is None:
                return False
            row.synced = True
            return True

    def purge_synced(self) -> int:
        with self.database.get_db() as session:
            return session.query(LocalChange).filter(LocalChange.synced.is_(True)).delete()

    # === Metadata ===

    def get_metadata(self, key: str, default: Any = None) -> Any:
        with self.database.get_db() as session:
            row = session.get(LocalMetadata, key)
            return row.value if row else default

    def set_metadata(self, key: str, value: Any) -> None:
        with self.database.get_db() as session:
            session.merge(LocalMetadata(key=key, value=value))

    # === Local mutations ===

    def save_record(self, record: Dict[str, Any]) -> ChangeEntry:
        """Create or update a record locally and queue the matching change."""
        isbn = require_isbn(record.get("isbn", ""))
        record = _jsonable({**record, "isbn": isbn, "updatedAt": datetime.now(UTC).isoformat()})
        with self.database.get_db() as session:
            existing = session.get(LocalBook, isbn)
            action = ChangeAction.UPDATE if existing is not None else ChangeAction.CREATE
            session.merge(LocalBook(isbn=isbn, data=record, needs_sync=True))
            change = self._append(session, action, isbn, record)
        logger.info("Queued %s for %s", change.action.value, isbn)
        return change

    def delete_record(self, isbn: str) -> ChangeEntry:
        isbn = require_isbn(isbn)
        with self.database.get_db() as session:
            session.query(LocalBook).filter(LocalBook.isbn == isbn).delete()
            change = self._append(session, ChangeAction.DELETE, isbn, {"isbn": isbn})
        logger.info("Queued delete for %s", isbn)
        return change

    def _require_record(self, isbn: str) -> Dict[str, Any]:
        record = self.get_record(require_isbn(isbn))
        if record is None:
            raise NotFoundError(f"Book {isbn} is not in the local catalog")
        return record

    def set_favourite(self, isbn: str, is_favourite: bool) -> ChangeEntry:
        record = self._require_record(isbn)
        record["isFavourite"] = is_favourite
        return self.save_record(record)

    def update_loan_status(self, isbn: str, loan_status: Dict[str, Any]) -> ChangeEntry:
        record = self._require_record(isbn)
        record["loanStatus"] = loan_status
        return self.save_record(record)

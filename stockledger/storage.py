"""Key-value persistence for the ledger's two collections.

Both adapters keep each collection as a JSON list under a single key and
overwrite the whole value on every save.
"""
import json
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from stockledger.exceptions import PersistenceError
from stockledger.models.storage_record import StorageRecord

logger = logging.getLogger(__name__)


def _decode(key: str, raw: str | None) -> list:
    if raw is None:
        return []
    try:
        value = json.loads(raw)
    except ValueError:
        logger.warning("Stored value for '%s' is not valid JSON, starting empty", key)
        return []
    if not isinstance(value, list):
        logger.warning("Stored value for '%s' is not a list, starting empty", key)
        return []
    return value


class MemoryStorage:
    """Process-local storage, mostly for tests and throwaway sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def load(self, key: str) -> list:
        return _decode(key, self._data.get(key))

    def save(self, key: str, records: list) -> None:
        try:
            self._data[key] = json.dumps(records)
        except (TypeError, ValueError) as e:
            raise PersistenceError(key, str(e)) from e

    def raw(self, key: str) -> str | None:
        return self._data.get(key)


class SqlStorage:
    """Stores each key as one row of the ``storage_records`` table."""

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def load(self, key: str) -> list:
        db: Session = self._session_factory()
        try:
            record = db.get(StorageRecord, key)
            return _decode(key, record.value if record else None)
        except SQLAlchemyError as e:
            logger.error("Loading '%s' failed: %s", key, e)
            raise PersistenceError(key, str(e), operation="load") from e
        finally:
            db.close()

    def save(self, key: str, records: list) -> None:
        db: Session = self._session_factory()
        try:
            payload = json.dumps(records)
            record = db.get(StorageRecord, key)
            if record:
                record.value = payload
            else:
                db.add(StorageRecord(key=key, value=payload))
            db.commit()
        except (SQLAlchemyError, TypeError, ValueError) as e:
            db.rollback()
            logger.error("Saving '%s' failed: %s", key, e)
            raise PersistenceError(key, str(e)) from e
        finally:
            db.close()

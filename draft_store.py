# draft_store.py
import logging
import secrets
import threading
import time
from datetime import datetime, timezone
from typing import Callable, List, Optional

from pydantic import TypeAdapter, ValidationError

from models import CVRecord, Draft

logger = logging.getLogger(__name__)

DRAFTS_KEY = "cv-maker-drafts"

_drafts_adapter = TypeAdapter(List[Draft])


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_draft_id() -> str:
    # millisecond timestamp + short random suffix; only uniqueness matters
    return f"{int(time.time() * 1000)}-{secrets.token_hex(3)}"


class DraftStore:
    """
    CRUD over the saved drafts, persisted as ONE json blob under `key`.

    `storage` is anything with get_item / set_item (db.SQLStorage, db.MemoryStorage).
    Every operation re-reads the blob first, so several stores sharing one
    storage see each other's saves.
    Storage problems never raise out of here: they are logged and the store
    keeps working on its in-memory copy.
    """

    def __init__(self, storage, key: str = DRAFTS_KEY, clock: Callable[[], datetime] = _utc_now):
        self.storage = storage
        self.key = key
        self.clock = clock
        self._lock = threading.RLock()
        self._drafts: List[Draft] = []
        # a write failed: memory is ahead of storage until the next good write
        self._unsaved = False
        self.reload()

    def _now_iso(self) -> str:
        return self.clock().isoformat()

    def reload(self) -> None:
        with self._lock:
            if self._unsaved:
                return
            drafts = self._read()
            if drafts is not None:
                self._drafts = drafts

    def _read(self) -> Optional[List[Draft]]:
        """Stored drafts; [] for missing/corrupt blob, None if storage is unreachable."""
        try:
            raw = self.storage.get_item(self.key)
        except Exception:
            logger.exception("[DRAFTS] Could not read drafts from storage")
            return None

        if not raw:
            return []

        try:
            return _drafts_adapter.validate_json(raw)
        except ValidationError as e:
            logger.error(f"[DRAFTS] Failed to load drafts, starting empty: {e}")
            return []

    def _write(self) -> None:
        blob = _drafts_adapter.dump_json(self._drafts, by_alias=True).decode("utf-8")
        try:
            self.storage.set_item(self.key, blob)
            self._unsaved = False
        except Exception:
            self._unsaved = True
            logger.exception("[DRAFTS] Could not persist drafts (will retry on next save)")

    def list(self) -> List[Draft]:
        with self._lock:
            self.reload()
            return [d.model_copy(deep=True) for d in self._drafts]

    def get(self, draft_id: str) -> Optional[Draft]:
        with self._lock:
            self.reload()
            for d in self._drafts:
                if d.id == draft_id:
                    return d.model_copy(deep=True)
        return None

    def save(self, draft: Draft) -> Draft:
        """
        Replace the draft with the same id (refreshing updated_at) or append it.
        Returns the stored version.
        """
        stored = draft.model_copy(deep=True)
        with self._lock:
            self.reload()
            for i, d in enumerate(self._drafts):
                if d.id == draft.id:
                    stored.updated_at = self._now_iso()
                    self._drafts[i] = stored
                    break
            else:
                self._drafts.append(stored)
            self._write()
        return stored.model_copy(deep=True)

    def delete(self, draft_id: str) -> None:
        with self._lock:
            self.reload()
            remaining = [d for d in self._drafts if d.id != draft_id]
            if len(remaining) == len(self._drafts):
                return
            self._drafts = remaining
            self._write()

    def create_new(self) -> Draft:
        """A blank, unsaved draft. The caller decides when to save it."""
        return self.create_from(CVRecord())

    def create_from(self, record: CVRecord, name: Optional[str] = None) -> Draft:
        now = self.clock()
        stamp = now.isoformat()
        return Draft(
            id=new_draft_id(),
            name=name or f"Draft {now.strftime('%m/%d/%Y')}",
            data=record.model_copy(deep=True),
            created_at=stamp,
            updated_at=stamp,
        )

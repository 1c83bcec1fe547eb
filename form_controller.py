# form_controller.py
from __future__ import annotations

import base64
import logging
import math
import os
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, Optional

from draft_store import DraftStore
from models import ROW_FACTORIES, CVRecord
from sample_data import sample_cv

logger = logging.getLogger(__name__)

AUTOSAVE_DELAY_SECONDS = float(os.getenv("AUTOSAVE_DELAY_SECONDS", "2"))

# -------------------------
# Overflow heuristic (px at 96 DPI)
# -------------------------
PAGE_HEIGHT = 1123 - 2 * 45  # A4 portrait minus ~12mm print margins
CHARS_PER_LINE = 90
LINE_HEIGHT = 20
SECTION_SPACING = 24

HEADER_HEIGHT = 140
SECTION_TITLE_HEIGHT = 40
EXPERIENCE_ENTRY_HEIGHT = 60
EDUCATION_ENTRY_HEIGHT = 60
SKILLS_HEIGHT = 80
LANGUAGES_HEIGHT = 60

MAX_PHOTO_BYTES = 2 * 1024 * 1024

REQUIRED_FIELDS = {
    "full_name": "Full name",
    "title": "Professional title",
    "email": "Email",
    "phone": "Phone number",
    "summary": "Professional summary",
}

OVERFLOW_WARNING = (
    "Your CV will probably run past one page.\n\n"
    "To keep it on a single page:\n"
    "• Shorten long descriptions and the summary\n"
    "• Remove older or less relevant entries\n"
    "• Use short bullet points instead of paragraphs\n\n"
    "Continue to the preview anyway?"
)

EXAMPLE_FILL_WARNING = (
    "This replaces everything in the form with the example CV. "
    "Your current entries will be lost."
)


# ============================================================
# Overflow estimate
# ============================================================
def _text_height(text: str) -> int:
    text = (text or "").strip()
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_LINE) * LINE_HEIGHT


def estimate_height(record: CVRecord) -> int:
    """
    Rough rendered height of the CV. Fixed cost per section/entry plus
    text length wrapped at CHARS_PER_LINE. Not a layout engine.
    """
    height = HEADER_HEIGHT

    if record.summary.strip():
        height += SECTION_SPACING + SECTION_TITLE_HEIGHT + _text_height(record.summary)

    experience = [e for e in record.experience if not e.is_blank()]
    if experience:
        height += SECTION_SPACING + SECTION_TITLE_HEIGHT
        for exp in experience:
            height += EXPERIENCE_ENTRY_HEIGHT + _text_height(exp.description)

    education = [e for e in record.education if not e.is_blank()]
    if education:
        height += SECTION_SPACING + SECTION_TITLE_HEIGHT
        for edu in education:
            height += EDUCATION_ENTRY_HEIGHT + _text_height(edu.description)

    if any(s.strip() for s in record.skills):
        height += SECTION_SPACING + SKILLS_HEIGHT

    if any(lang.name for lang in record.languages):
        height += SECTION_SPACING + LANGUAGES_HEIGHT

    return height


def is_overflowing(record: CVRecord) -> bool:
    return estimate_height(record) > PAGE_HEIGHT


# ============================================================
# Validation
# ============================================================
def validate_required(record: CVRecord) -> Dict[str, str]:
    """field name -> message for every required field left blank"""
    errors = {}
    for name, label in REQUIRED_FIELDS.items():
        value = getattr(record, name) or ""
        if not value.strip():
            errors[name] = f"{label} is required."
    return errors


# ============================================================
# Deferred work
# ============================================================
class ThreadingScheduler:
    """schedule(delay, fn) -> handle with .cancel(); backed by threading.Timer"""

    def schedule(self, delay: float, fn: Callable[[], None]):
        timer = threading.Timer(delay, fn)
        timer.daemon = True
        timer.start()
        return timer


class Debouncer:
    """Trailing-edge debounce: every trigger() restarts the countdown."""

    def __init__(self, delay: float, action: Callable[[], None], scheduler=None):
        self.delay = delay
        self.action = action
        self.scheduler = scheduler or ThreadingScheduler()
        self._handle = None
        self._lock = threading.Lock()

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
            handle = None

            def fire():
                with self._lock:
                    if self._handle is not handle:
                        return  # superseded or cancelled
                    self._handle = None
                self.action()

            handle = self.scheduler.schedule(self.delay, fire)
            self._handle = handle

    def cancel(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None


# ============================================================
# Results handed back to the UI
# ============================================================
@dataclass
class Confirmation:
    """
    A question for the user. The UI shows `message` and calls exactly one
    of proceed() / cancel() once the user decides.
    """

    message: str
    on_proceed: Callable[[], None]
    on_cancel: Callable[[], None] = lambda: None
    resolved: bool = False

    def proceed(self) -> None:
        if not self.resolved:
            self.resolved = True
            self.on_proceed()

    def cancel(self) -> None:
        if not self.resolved:
            self.resolved = True
            self.on_cancel()


@dataclass
class SubmitResult:
    errors: Dict[str, str] = field(default_factory=dict)
    confirmation: Optional[Confirmation] = None
    accepted: bool = False


# ============================================================
# Controller
# ============================================================
class FormController:
    """
    Owns the CV being edited. Writes go to the DraftStore only, and only
    through the debounced autosave (or the orchestrator on submit).
    """

    def __init__(
        self,
        store: DraftStore,
        record: CVRecord,
        draft_id: Optional[str] = None,
        delay: float = AUTOSAVE_DELAY_SECONDS,
        scheduler=None,
    ):
        self.store = store
        self.draft_id = draft_id
        self.record = record.model_copy(deep=True)
        self.last_saved_at: Optional[datetime] = None
        self.save_status = "idle"
        self.overflowing = is_overflowing(self.record)
        self._lock = threading.RLock()
        self._closed = False
        self._autosave = Debouncer(delay, self._save_now, scheduler)

    # -------------------------
    # Mutations
    # -------------------------
    def _changed(self) -> None:
        self.overflowing = is_overflowing(self.record)
        if self.draft_id and not self._closed:
            self.save_status = "pending"
            self._autosave.trigger()

    def update(self, **fields) -> None:
        with self._lock:
            for name, value in fields.items():
                if name not in CVRecord.model_fields:
                    raise AttributeError(f"Unknown CV field: {name}")
                setattr(self.record, name, value)
            self._changed()

    def set_template(self, template_id: str) -> None:
        with self._lock:
            self.record = CVRecord.model_validate({**self.record.model_dump(), "template": template_id})
            self._changed()

    def set_entry(self, collection: str, index: int, **fields) -> None:
        with self._lock:
            entry = getattr(self.record, collection)[index]
            for name, value in fields.items():
                if name not in type(entry).model_fields:
                    raise AttributeError(f"Unknown {collection} field: {name}")
                setattr(entry, name, value)
            self._changed()

    def set_skill(self, index: int, value: str) -> None:
        with self._lock:
            self.record.skills[index] = value
            self._changed()

    def add_row(self, collection: str) -> None:
        with self._lock:
            getattr(self.record, collection).append(ROW_FACTORIES[collection]())
            self._changed()

    def remove_row(self, collection: str, index: int) -> None:
        with self._lock:
            rows = getattr(self.record, collection)
            del rows[index]
            # re-validating re-seeds a blank row if that was the last one
            self.record = CVRecord.model_validate(self.record.model_dump())
            self._changed()

    def replace(self, record: CVRecord) -> None:
        with self._lock:
            self.record = record.model_copy(deep=True)
            self._changed()

    def snapshot(self) -> CVRecord:
        with self._lock:
            return self.record.model_copy(deep=True)

    # -------------------------
    # Autosave
    # -------------------------
    def _save_now(self) -> None:
        with self._lock:
            if self._closed or not self.draft_id:
                return
            draft = self.store.get(self.draft_id)
            if draft is None:
                # deleted elsewhere: start a fresh entry under the same id
                draft = self.store.create_from(self.record)
                draft.id = self.draft_id
            draft.data = self.record.model_copy(deep=True)
            self.store.save(draft)
            self.last_saved_at = datetime.now(timezone.utc)
            self.save_status = "saved"
        logger.info(f"[AUTOSAVE] Saved draft {self.draft_id}")

    def close(self) -> None:
        """Teardown: a pending autosave is dropped, not flushed."""
        with self._lock:
            self._closed = True
            self._autosave.cancel()
            if self.save_status == "pending":
                self.save_status = "idle"

    # -------------------------
    # Submit
    # -------------------------
    def submit(self, on_submit: Callable[[CVRecord], None]) -> SubmitResult:
        record = self.snapshot()

        errors = validate_required(record)
        if errors:
            return SubmitResult(errors=errors)

        if is_overflowing(record):
            return SubmitResult(
                confirmation=Confirmation(
                    message=OVERFLOW_WARNING,
                    on_proceed=lambda: on_submit(record),
                )
            )

        on_submit(record)
        return SubmitResult(accepted=True)

    # -------------------------
    # Photo
    # -------------------------
    def upload_photo(self, filename: str, content_type: str, data: bytes) -> Optional[str]:
        """
        Returns a user-facing error message, or None once the photo is stored.
        A rejected file leaves the form untouched.
        """
        content_type = (content_type or "").lower()
        if not content_type.startswith("image/"):
            logger.info(f"[PHOTO] Rejected {filename!r}: type {content_type or 'unknown'}")
            return "Please upload an image file (JPG, PNG, ...)."
        if len(data) > MAX_PHOTO_BYTES:
            logger.info(f"[PHOTO] Rejected {filename!r}: {len(data)} bytes")
            return "Image is too large. Maximum size is 2MB."

        encoded = base64.b64encode(data).decode("ascii")
        self.update(photo=f"data:{content_type};base64,{encoded}")
        return None

    def remove_photo(self) -> None:
        self.update(photo="")

    # -------------------------
    # Example fill
    # -------------------------
    def request_example_fill(self) -> Confirmation:
        return Confirmation(
            message=EXAMPLE_FILL_WARNING,
            on_proceed=lambda: self.replace(sample_cv()),
        )

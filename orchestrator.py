# orchestrator.py
import logging
from enum import Enum
from typing import Optional

from draft_store import DraftStore
from form_controller import FormController
from models import CVRecord, Draft
from sample_data import sample_cv

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    WELCOME = "welcome"
    FORM = "form"
    PREVIEW = "preview"


class ViewOrchestrator:
    """
    Welcome <-> Form <-> Preview. No terminal state.

    `draft_id` is the active draft; None means "nothing to persist"
    (the read-only example preview).
    """

    def __init__(self, store: DraftStore, scheduler=None, autosave_delay: Optional[float] = None):
        self.store = store
        self.scheduler = scheduler
        self.autosave_delay = autosave_delay
        self.screen = Screen.WELCOME
        self.draft_id: Optional[str] = None
        self.record: Optional[CVRecord] = None
        self.controller: Optional[FormController] = None

    # -------------------------
    # helpers
    # -------------------------
    def _close_controller(self) -> None:
        if self.controller is not None:
            self.controller.close()
            self.controller = None

    def _open_form(self, record: CVRecord, draft_id: Optional[str]) -> None:
        self._close_controller()
        kwargs = {"scheduler": self.scheduler}
        if self.autosave_delay is not None:
            kwargs["delay"] = self.autosave_delay
        self.draft_id = draft_id
        self.record = record.model_copy(deep=True)
        self.controller = FormController(self.store, self.record, draft_id=draft_id, **kwargs)
        self.screen = Screen.FORM

    def _to_welcome(self) -> None:
        self._close_controller()
        self.draft_id = None
        self.record = None
        self.screen = Screen.WELCOME

    # -------------------------
    # Welcome
    # -------------------------
    def start_new(self) -> Draft:
        draft = self.store.save(self.store.create_new())
        logger.info(f"[VIEW] New draft {draft.id}")
        self._open_form(draft.data, draft.id)
        return draft

    def continue_draft(self, draft_id: str) -> bool:
        draft = self.store.get(draft_id)
        if draft is None:
            logger.warning(f"[VIEW] Draft {draft_id} not found, staying on welcome")
            self._to_welcome()
            return False
        self._open_form(draft.data, draft.id)
        return True

    def delete_draft(self, draft_id: str) -> None:
        self.store.delete(draft_id)

    def try_example(self) -> Draft:
        draft = self.store.save(self.store.create_from(sample_cv()))
        self._open_form(draft.data, draft.id)
        return draft

    def preview_example(self) -> None:
        self._close_controller()
        self.draft_id = None
        self.record = sample_cv()
        self.screen = Screen.PREVIEW

    # -------------------------
    # Form / Preview
    # -------------------------
    def back(self) -> None:
        self._to_welcome()

    def submit(self, record: CVRecord) -> None:
        if self.draft_id:
            draft = self.store.get(self.draft_id) or self.store.create_from(record)
            draft.id = self.draft_id
            draft.data = record.model_copy(deep=True)
            self.store.save(draft)
        self._close_controller()
        self.record = record.model_copy(deep=True)
        self.screen = Screen.PREVIEW

    def edit(self) -> None:
        if self.record is None:
            self._to_welcome()
            return
        self._open_form(self.record, self.draft_id)

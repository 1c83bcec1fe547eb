"""Unit tests for the Welcome / Form / Preview state machine."""

import pytest

from orchestrator import Screen, ViewOrchestrator
from sample_data import sample_cv

DELAY = 2.0


@pytest.fixture
def orch(store, scheduler):
    return ViewOrchestrator(store, scheduler=scheduler, autosave_delay=DELAY)


@pytest.mark.unit
def test_starts_on_welcome(orch):
    assert orch.screen == Screen.WELCOME
    assert orch.controller is None


@pytest.mark.unit
def test_start_new_persists_and_opens_form(orch, store):
    draft = orch.start_new()

    assert orch.screen == Screen.FORM
    assert orch.draft_id == draft.id
    assert store.get(draft.id) is not None
    assert orch.controller.draft_id == draft.id


@pytest.mark.unit
def test_continue_existing_draft(orch, store, jane):
    draft = store.save(store.create_from(jane))

    assert orch.continue_draft(draft.id)
    assert orch.screen == Screen.FORM
    assert orch.controller.record == jane


@pytest.mark.unit
def test_continue_missing_draft_stays_on_welcome(orch):
    assert not orch.continue_draft("gone")
    assert orch.screen == Screen.WELCOME
    assert orch.draft_id is None


@pytest.mark.unit
def test_delete_draft_stays_on_welcome(orch, store):
    draft = store.save(store.create_new())
    orch.delete_draft(draft.id)

    assert orch.screen == Screen.WELCOME
    assert store.get(draft.id) is None


@pytest.mark.unit
def test_try_example_creates_draft(orch, store):
    draft = orch.try_example()

    assert orch.screen == Screen.FORM
    assert store.get(draft.id).data == sample_cv()


@pytest.mark.unit
def test_preview_example_has_no_draft(orch, store, storage):
    orch.preview_example()

    assert orch.screen == Screen.PREVIEW
    assert orch.draft_id is None
    assert orch.record == sample_cv()
    assert store.list() == []
    assert storage.writes == 0


@pytest.mark.unit
def test_editing_previewed_example_never_saves(orch, storage, scheduler):
    orch.preview_example()
    orch.edit()

    assert orch.screen == Screen.FORM
    orch.controller.update(title="Changed")
    scheduler.advance(DELAY)
    orch.submit(orch.controller.snapshot())

    assert storage.writes == 0
    assert orch.screen == Screen.PREVIEW


@pytest.mark.unit
def test_back_from_form_keeps_draft(orch, store):
    draft = orch.start_new()
    orch.back()

    assert orch.screen == Screen.WELCOME
    assert orch.draft_id is None
    assert orch.controller is None
    assert store.get(draft.id) is not None


@pytest.mark.unit
def test_back_cancels_pending_autosave(orch, store, scheduler):
    draft = orch.start_new()
    orch.controller.update(full_name="Lost edit")
    orch.back()
    scheduler.advance(DELAY)

    assert store.get(draft.id).data.full_name == ""


@pytest.mark.unit
def test_submit_writes_back_and_previews(orch, store, jane):
    draft = orch.start_new()
    orch.controller.replace(jane)

    result = orch.controller.submit(orch.submit)

    assert result.accepted
    assert orch.screen == Screen.PREVIEW
    assert orch.record == jane
    assert store.get(draft.id).data == jane
    assert orch.controller is None


@pytest.mark.unit
def test_edit_returns_to_same_draft(orch, jane):
    draft = orch.start_new()
    orch.submit(jane)
    orch.edit()

    assert orch.screen == Screen.FORM
    assert orch.draft_id == draft.id
    assert orch.controller.record == jane


@pytest.mark.unit
def test_back_from_preview(orch, jane):
    orch.start_new()
    orch.submit(jane)
    orch.back()

    assert orch.screen == Screen.WELCOME
    assert orch.record is None


@pytest.mark.unit
def test_machine_is_cyclic(orch, store, jane):
    for _ in range(3):
        orch.start_new()
        orch.submit(jane)
        orch.back()

    assert orch.screen == Screen.WELCOME
    assert len(store.list()) == 3

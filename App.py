import base64
import logging
import secrets
from datetime import datetime

import streamlit as st
import streamlit.components.v1 as components

from db import SQLStorage
from draft_store import DRAFTS_KEY, DraftStore
from form_controller import Confirmation, FormController
from models import LANGUAGE_LEVELS, TEMPLATES, CVRecord, get_template_info
from orchestrator import Screen, ViewOrchestrator
from renderer import render
from utils import (
    DEFAULT_PAGE_SIZE,
    PAGE_SIZES,
    render_cv_docx_bytes,
    render_cv_html,
    render_cv_pdf_bytes,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# -------------------------
# PAGE CONFIG (MUST BE FIRST st.* CALL)
# -------------------------
st.set_page_config(
    page_title="CV Maker",
    page_icon="📄",
    layout="centered",
)

st.markdown(
    """
    <style>
    /* ===== Mobile layout fixes ===== */
    @media (max-width: 768px) {
        .block-container {
            max-width: 100% !important;
            padding-left: 0.75rem !important;
            padding-right: 0.75rem !important;
        }
        h1 { font-size: 1.8rem !important; }
        h2 { font-size: 1.4rem !important; }
    }
    </style>
    """,
    unsafe_allow_html=True,
)

# Widget keys for the CV form all start with this prefix
KEY_PREFIX = "cv_"

PERSONAL_FIELDS = [
    ("full_name", "Full name *", "John Doe"),
    ("title", "Professional title *", "Software Engineer"),
    ("email", "Email *", "john@example.com"),
    ("phone", "Phone number *", "+62 812-3456-7890"),
    ("location", "Location", "Jakarta, Indonesia"),
    ("website", "Website/Portfolio", "https://yourwebsite.com"),
    ("linkedin", "LinkedIn", "https://linkedin.com/in/johndoe"),
    ("github", "GitHub", "https://github.com/johndoe"),
]

EDUCATION_FIELDS = [
    ("school", "School/University", "University Name"),
    ("degree", "Degree", "Bachelor's Degree"),
    ("field", "Field of study", "Computer Science"),
    ("start_date", "Start date", "YYYY-MM"),
    ("end_date", "End date", "YYYY-MM"),
]

EXPERIENCE_FIELDS = [
    ("company", "Company", "Company Name"),
    ("position", "Position", "Software Engineer"),
    ("location", "Location", "Jakarta, Indonesia"),
    ("start_date", "Start date", "YYYY-MM"),
    ("end_date", "End date", "YYYY-MM (leave empty if current)"),
]


# ============================================================
# SESSION OBJECTS (one store + one orchestrator per browser session)
# ============================================================
WORKSPACE_PARAM = "ws"


def get_workspace() -> str:
    """
    Drafts belong to a workspace token kept in the URL (?ws=...), so each
    browser only lists its own drafts. Bookmark the URL to come back to them.
    """
    ws = st.query_params.get(WORKSPACE_PARAM)
    if not ws:
        ws = secrets.token_urlsafe(12)
        st.query_params[WORKSPACE_PARAM] = ws
    return ws


def get_orchestrator() -> ViewOrchestrator:
    if "orchestrator" not in st.session_state:
        store = DraftStore(SQLStorage(), key=f"{DRAFTS_KEY}:{get_workspace()}")
        st.session_state["orchestrator"] = ViewOrchestrator(store)
    return st.session_state["orchestrator"]


orch = get_orchestrator()


def _controller() -> FormController:
    return orch.controller


def _row_key(collection: str, i: int, name: str) -> str:
    return f"{KEY_PREFIX}{collection}_{i}_{name}"


def seed_form_state(record: CVRecord) -> None:
    """
    Copy the record into widget keys. Only called from callbacks,
    i.e. before any widget of the next run is created.
    """
    for k in [k for k in st.session_state.keys() if str(k).startswith(KEY_PREFIX)]:
        del st.session_state[k]

    for name, _, _ in PERSONAL_FIELDS:
        st.session_state[KEY_PREFIX + name] = getattr(record, name)
    st.session_state[KEY_PREFIX + "summary"] = record.summary
    st.session_state[KEY_PREFIX + "template"] = record.template

    for i, edu in enumerate(record.education):
        for name, _, _ in EDUCATION_FIELDS:
            st.session_state[_row_key("education", i, name)] = getattr(edu, name)
        st.session_state[_row_key("education", i, "description")] = edu.description

    for i, exp in enumerate(record.experience):
        for name, _, _ in EXPERIENCE_FIELDS:
            st.session_state[_row_key("experience", i, name)] = getattr(exp, name)
        st.session_state[_row_key("experience", i, "description")] = exp.description

    for i, skill in enumerate(record.skills):
        st.session_state[_row_key("skills", i, "value")] = skill

    for i, lang in enumerate(record.languages):
        st.session_state[_row_key("languages", i, "name")] = lang.name
        st.session_state[_row_key("languages", i, "level")] = lang.level

    st.session_state.pop("_form_errors", None)


def _ask(confirmation: Confirmation) -> None:
    st.session_state["_pending_confirm"] = confirmation


# ============================================================
# CALLBACKS
# ============================================================
def on_start_new():
    orch.start_new()
    seed_form_state(_controller().record)


def on_continue(draft_id: str):
    if orch.continue_draft(draft_id):
        seed_form_state(_controller().record)
    else:
        st.session_state["_flash"] = "That draft no longer exists."


def on_delete(draft_id: str, label: str):
    _ask(
        Confirmation(
            message=f'Are you sure you want to delete "{label}"? This action cannot be undone.',
            on_proceed=lambda: orch.delete_draft(draft_id),
        )
    )


def on_try_example():
    orch.try_example()
    seed_form_state(_controller().record)


def on_preview_example():
    orch.preview_example()


def on_back():
    st.session_state.pop("_pending_confirm", None)
    orch.back()


def on_edit():
    orch.edit()
    seed_form_state(_controller().record)


def on_field_change(name: str):
    _controller().update(**{name: st.session_state[KEY_PREFIX + name]})
    (st.session_state.get("_form_errors") or {}).pop(name, None)


def on_template_change():
    _controller().set_template(st.session_state[KEY_PREFIX + "template"])


def on_row_change(collection: str, i: int, name: str):
    value = st.session_state[_row_key(collection, i, name)]
    if collection == "skills":
        _controller().set_skill(i, value)
    else:
        _controller().set_entry(collection, i, **{name: value})


def on_add_row(collection: str):
    _controller().add_row(collection)
    seed_form_state(_controller().record)


def on_remove_row(collection: str, i: int):
    _controller().remove_row(collection, i)
    seed_form_state(_controller().record)


def on_photo_upload():
    uploaded = st.session_state.get("photo_uploader")
    if uploaded is None:
        return
    error = _controller().upload_photo(uploaded.name, uploaded.type, uploaded.getvalue())
    if error:
        st.session_state["_photo_error"] = error


def on_photo_remove():
    _controller().remove_photo()


def on_fill_example():
    ctrl = _controller()
    confirmation = ctrl.request_example_fill()
    fill = confirmation.on_proceed

    def proceed():
        fill()
        seed_form_state(ctrl.record)

    confirmation.on_proceed = proceed
    _ask(confirmation)


def on_submit():
    result = _controller().submit(on_submit=orch.submit)
    if result.errors:
        st.session_state["_form_errors"] = result.errors
    elif result.confirmation is not None:
        _ask(result.confirmation)


def on_confirm(proceed: bool):
    confirmation = st.session_state.pop("_pending_confirm", None)
    if confirmation is None:
        return
    if proceed:
        confirmation.proceed()
    else:
        confirmation.cancel()


# ============================================================
# CONFIRMATION (non-blocking, answered on the next click)
# ============================================================
def render_pending_confirmation() -> bool:
    confirmation = st.session_state.get("_pending_confirm")
    if confirmation is None:
        return False
    st.warning(confirmation.message)
    c1, c2 = st.columns(2)
    with c1:
        st.button("Continue", key="btn_confirm_yes", on_click=on_confirm, args=(True,), type="primary")
    with c2:
        st.button("Cancel", key="btn_confirm_no", on_click=on_confirm, args=(False,))
    return True


# ============================================================
# WELCOME
# ============================================================
def _format_dt(ts: str) -> str:
    try:
        return datetime.fromisoformat(ts).astimezone().strftime("%b %d, %Y, %I:%M %p")
    except ValueError:
        return ts


def render_welcome() -> None:
    st.title("Welcome to CV Maker!")
    st.caption("Create Your Professional CV")

    flash = st.session_state.pop("_flash", None)
    if flash:
        st.warning(flash)

    st.info(
        "📝 **Notes**\n\n"
        "- All data is stored locally\n"
        "- Most fields are optional, fill what you need\n"
        "- More complete data = better CV result"
    )

    render_pending_confirmation()

    drafts = orch.store.list()
    if drafts:
        st.subheader(f"Your Drafts ({len(drafts)})")
        for draft in drafts:
            label = draft.data.full_name or draft.name
            with st.container(border=True):
                c1, c2, c3 = st.columns([6, 2, 1])
                with c1:
                    st.markdown(f"**{label}**")
                    st.caption(draft.data.title or "No title")
                    st.caption(f"Last updated: {_format_dt(draft.updated_at)}")
                with c2:
                    st.button("Continue", key=f"btn_continue_{draft.id}", on_click=on_continue, args=(draft.id,))
                with c3:
                    st.button("✕", key=f"btn_delete_{draft.id}", on_click=on_delete, args=(draft.id, label), help="Delete draft")

    st.button("+ Create New CV", key="btn_new", on_click=on_start_new, type="primary", use_container_width=True)

    st.caption("Want to see an example first?")
    c1, c2 = st.columns(2)
    with c1:
        st.button("✏️ Edit Example", key="btn_try_example", on_click=on_try_example, use_container_width=True)
        st.caption("Fill form with sample")
    with c2:
        st.button("👁️ Preview Example", key="btn_preview_example", on_click=on_preview_example, use_container_width=True)
        st.caption("See final result")


# ============================================================
# FORM
# ============================================================
def _field_error(name: str) -> None:
    msg = (st.session_state.get("_form_errors") or {}).get(name)
    if msg:
        st.error(msg)


def render_form() -> None:
    ctrl = _controller()
    record = ctrl.record

    top1, top2 = st.columns([4, 1])
    with top1:
        st.header("Create Your CV")
    with top2:
        st.button("← Back", key="btn_form_back", on_click=on_back)

    if ctrl.save_status == "pending":
        st.caption("Saving…")
    elif ctrl.last_saved_at is not None:
        st.caption(f"Draft saved at {ctrl.last_saved_at.astimezone().strftime('%H:%M:%S')}")

    if render_pending_confirmation():
        st.stop()

    st.button("Fill with example data", key="btn_fill_example", on_click=on_fill_example)

    # -------------------------
    # Template
    # -------------------------
    st.selectbox(
        "CV template",
        options=[t.id for t in TEMPLATES],
        format_func=lambda tid: f"{get_template_info(tid).name} – {get_template_info(tid).description}",
        key=KEY_PREFIX + "template",
        on_change=on_template_change,
    )

    # -------------------------
    # 1. Personal information
    # -------------------------
    st.subheader("1. Personal information")
    for name, label, placeholder in PERSONAL_FIELDS:
        st.text_input(label, key=KEY_PREFIX + name, placeholder=placeholder, on_change=on_field_change, args=(name,))
        _field_error(name)

    st.markdown("**Photo (optional)**")
    if record.photo:
        st.image(base64.b64decode(record.photo.split(",", 1)[-1]), width=120)
        st.button("Remove photo", key="btn_photo_remove", on_click=on_photo_remove)
    else:
        st.file_uploader(
            "Upload a photo (max 2MB)",
            type=["png", "jpg", "jpeg", "gif", "webp"],
            key="photo_uploader",
            on_change=on_photo_upload,
        )
    photo_error = st.session_state.pop("_photo_error", None)
    if photo_error:
        st.error(photo_error)

    # -------------------------
    # 2. Profile summary
    # -------------------------
    st.subheader("2. Profile summary")
    st.text_area(
        "Professional summary *",
        key=KEY_PREFIX + "summary",
        height=120,
        placeholder="Brief description about yourself and your professional experience...",
        on_change=on_field_change,
        args=("summary",),
    )
    _field_error("summary")

    # -------------------------
    # 3. Education
    # -------------------------
    st.subheader("3. Education")
    for i in range(len(record.education)):
        with st.container(border=True):
            for name, label, placeholder in EDUCATION_FIELDS:
                st.text_input(label, key=_row_key("education", i, name), placeholder=placeholder,
                              on_change=on_row_change, args=("education", i, name))
            st.text_area("Description", key=_row_key("education", i, "description"),
                         placeholder="Achievements, GPA, relevant coursework...",
                         on_change=on_row_change, args=("education", i, "description"))
            if len(record.education) > 1:
                st.button("Remove", key=f"btn_rm_education_{i}", on_click=on_remove_row, args=("education", i))
    st.button("+ Add Education", key="btn_add_education", on_click=on_add_row, args=("education",))

    # -------------------------
    # 4. Experience
    # -------------------------
    st.subheader("4. Work experience")
    for i in range(len(record.experience)):
        with st.container(border=True):
            for name, label, placeholder in EXPERIENCE_FIELDS:
                st.text_input(label, key=_row_key("experience", i, name), placeholder=placeholder,
                              on_change=on_row_change, args=("experience", i, name))
            st.text_area("Description", key=_row_key("experience", i, "description"),
                         placeholder="Describe your responsibilities and achievements...",
                         help="Use one bullet per line.",
                         on_change=on_row_change, args=("experience", i, "description"))
            if len(record.experience) > 1:
                st.button("Remove", key=f"btn_rm_experience_{i}", on_click=on_remove_row, args=("experience", i))
    st.button("+ Add Experience", key="btn_add_experience", on_click=on_add_row, args=("experience",))

    # -------------------------
    # 5. Skills
    # -------------------------
    st.subheader("5. Skills")
    for i in range(len(record.skills)):
        c1, c2 = st.columns([6, 1])
        with c1:
            st.text_input(f"Skill {i + 1}", key=_row_key("skills", i, "value"), placeholder="e.g. Python",
                          on_change=on_row_change, args=("skills", i, "value"), label_visibility="collapsed")
        with c2:
            if len(record.skills) > 1:
                st.button("✕", key=f"btn_rm_skills_{i}", on_click=on_remove_row, args=("skills", i))
    st.button("+ Add Skill", key="btn_add_skills", on_click=on_add_row, args=("skills",))

    # -------------------------
    # 6. Languages
    # -------------------------
    st.subheader("6. Languages")
    level_options = [""] + LANGUAGE_LEVELS
    for i, lang in enumerate(record.languages):
        c1, c2, c3 = st.columns([4, 3, 1])
        with c1:
            st.text_input("Language", key=_row_key("languages", i, "name"), placeholder="English",
                          on_change=on_row_change, args=("languages", i, "name"))
        with c2:
            if lang.level and lang.level not in level_options:
                level_options_i = level_options + [lang.level]
            else:
                level_options_i = level_options
            st.selectbox("Level", options=level_options_i, key=_row_key("languages", i, "level"),
                         format_func=lambda v: v or "Select level",
                         on_change=on_row_change, args=("languages", i, "level"))
        with c3:
            if len(record.languages) > 1:
                st.button("✕", key=f"btn_rm_languages_{i}", on_click=on_remove_row, args=("languages", i))
    st.button("+ Add Language", key="btn_add_languages", on_click=on_add_row, args=("languages",))

    # -------------------------
    # Submit
    # -------------------------
    st.divider()
    if ctrl.overflowing:
        st.warning("⚠️ Your CV may be longer than one page. Consider shortening descriptions.")
    if st.session_state.get("_form_errors"):
        st.error("Please fill in all required fields (marked with *).")
    st.button("Generate CV", key="btn_submit", on_click=on_submit, type="primary", use_container_width=True)


# ============================================================
# PREVIEW
# ============================================================
def render_preview() -> None:
    record = orch.record

    c1, c2 = st.columns([3, 2])
    with c1:
        st.button("← Back to Home", key="btn_preview_back", on_click=on_back)
    with c2:
        st.button("Edit CV", key="btn_preview_edit", on_click=on_edit)

    page_size = st.selectbox(
        "Paper size",
        options=list(PAGE_SIZES.keys()),
        index=list(PAGE_SIZES.keys()).index(DEFAULT_PAGE_SIZE),
        key="preview_page_size",
    )

    tree = render(record)
    html_str = render_cv_html(tree, page_size=page_size)
    components.html(html_str, height=1200, scrolling=True)

    st.subheader("Download")
    st.caption("Open the HTML file in your browser and use Print → Save as PDF for an exact copy of the preview.")

    file_stub = (record.full_name or "cv").strip().replace(" ", "_")

    d1, d2, d3 = st.columns(3)
    with d1:
        st.download_button(
            "🖨️ Printable HTML",
            data=html_str.encode("utf-8"),
            file_name=f"{file_stub}.html",
            mime="text/html",
        )
    with d2:
        try:
            docx_bytes = render_cv_docx_bytes(tree, page_size=page_size)
            st.download_button(
                "📝 Word (.docx)",
                data=docx_bytes,
                file_name=f"{file_stub}.docx",
                mime="application/vnd.openxmlformats-officedocument.wordprocessingml.document",
            )
        except Exception as e:
            logger.exception("[PREVIEW] DOCX export failed")
            st.error(f"Word export failed: {e}")
    with d3:
        if st.button("📄 Build PDF", key="btn_build_pdf"):
            try:
                with st.spinner("Generating PDF..."):
                    st.session_state["_pdf_bytes"] = render_cv_pdf_bytes(tree, page_size=page_size)
            except RuntimeError as e:
                st.error(f"PDF generation failed: {e}")
        if st.session_state.get("_pdf_bytes"):
            st.download_button(
                "Download PDF",
                data=st.session_state["_pdf_bytes"],
                file_name=f"{file_stub}.pdf",
                mime="application/pdf",
            )


# ============================================================
# ROUTING
# ============================================================
if orch.screen != Screen.PREVIEW:
    st.session_state.pop("_pdf_bytes", None)

if orch.screen == Screen.FORM and orch.controller is not None:
    render_form()
elif orch.screen == Screen.PREVIEW and orch.record is not None:
    render_preview()
else:
    render_welcome()

"""Integration tests: HTML / DOCX / PDF export of rendered CVs."""

from io import BytesIO

import pytest
from docx import Document

from renderer import RENDERERS, render
from sample_data import sample_cv
from utils import PAGE_SIZES, render_cv_docx_bytes, render_cv_html, render_cv_pdf_bytes


def _tree(template_id, record=None):
    record = record or sample_cv()
    return render(record.model_copy(update={"template": template_id}))


@pytest.mark.integration
@pytest.mark.parametrize("template_id", list(RENDERERS))
def test_html_contains_every_fact(template_id):
    html = render_cv_html(_tree(template_id))

    assert f"template-{template_id}" in html
    for text in ["John Anderson", "TechCorp Inc.", "Jan 2022 - Present", "Mar 2020 - Dec 2021",
                 "University of California, Berkeley", "Sep 2015 - May 2019", "GraphQL",
                 "Mandarin", "johnanderson.dev"]:
        assert text in html


@pytest.mark.integration
@pytest.mark.parametrize("page_size", list(PAGE_SIZES))
def test_html_page_size(page_size):
    width, height = PAGE_SIZES[page_size]
    html = render_cv_html(_tree("classic"), page_size=page_size)
    assert f"size: {width}mm {height}mm" in html
    assert ".no-print" in html


@pytest.mark.integration
def test_html_escapes_user_text(jane):
    jane.summary = "<script>alert(1)</script>"
    html = render_cv_html(render(jane))
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


@pytest.mark.integration
def test_unknown_page_size():
    with pytest.raises(ValueError):
        render_cv_html(_tree("modern"), page_size="A3")


@pytest.mark.integration
def test_html_skips_empty_sections(jane):
    jane.skills = ["", " "]
    html = render_cv_html(render(jane))
    assert "section-skills" not in html
    assert "section-experience" in html


@pytest.mark.integration
@pytest.mark.parametrize("template_id", list(RENDERERS))
def test_docx_contains_sections(template_id):
    data = render_cv_docx_bytes(_tree(template_id))
    doc = Document(BytesIO(data))
    text = "\n".join(p.text for p in doc.paragraphs)

    assert "John Anderson" in text
    assert "TechCorp Inc." in text
    assert "Jan 2022 - Present" in text
    assert "English – Native" in text


@pytest.mark.integration
def test_pdf_export():
    pytest.importorskip("playwright")
    try:
        pdf = render_cv_pdf_bytes(_tree("ats"), page_size="Letter")
    except RuntimeError as e:
        pytest.skip(f"Chromium not available: {e}")
    assert pdf.startswith(b"%PDF")

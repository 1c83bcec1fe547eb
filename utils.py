from __future__ import annotations

from io import BytesIO
from pathlib import Path
import asyncio
import base64
import logging
import os
import sys

from jinja2 import Environment, FileSystemLoader, select_autoescape
from docx import Document

from renderer import PresentationTree

logger = logging.getLogger(__name__)

# ============================================================
# Page sizes (print / PDF)
# ============================================================
# name -> (width, height) in mm, portrait
PAGE_SIZES = {
    "A4": (210, 297),
    "F4": (210, 330),
    "Letter": (215.9, 279.4),
    "Legal": (215.9, 355.6),
}
DEFAULT_PAGE_SIZE = "A4"
PAGE_MARGIN_MM = 12


def _page_dims(page_size: str) -> tuple[float, float]:
    if page_size not in PAGE_SIZES:
        raise ValueError(f"Unknown page size {page_size!r}, expected one of {', '.join(PAGE_SIZES)}")
    return PAGE_SIZES[page_size]


# ============================================================
# Jinja setup
# ============================================================
BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
)

TEMPLATE_FILES = {
    "modern": "modern.html",
    "classic": "classic.html",
    "minimal": "minimal.html",
    "professional": "professional.html",
    "ats": "ats.html",
}


def render_cv_html(tree: PresentationTree, page_size: str = DEFAULT_PAGE_SIZE) -> str:
    width, height = _page_dims(page_size)
    template = env.get_template(TEMPLATE_FILES[tree.template])
    return template.render(
        cv=tree,
        page_width=f"{width}mm",
        page_height=f"{height}mm",
        page_margin=f"{PAGE_MARGIN_MM}mm",
    )


# ============================================================
# PDF (Playwright-only)
# ============================================================
def _prepare_windows_event_loop() -> None:
    if sys.platform.startswith("win"):
        try:
            asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())  # type: ignore[attr-defined]
        except Exception as e:
            logger.warning(f"[PDF] Could not set Windows event loop policy: {e}")


# Set a stable browser path (also set as a deployment variable)
os.environ.setdefault("PLAYWRIGHT_BROWSERS_PATH", "/app/.playwright")


def _render_pdf_with_playwright(html_str: str, page_size: str = DEFAULT_PAGE_SIZE) -> bytes:
    """
    Render PDF using Playwright + headless Chromium.
    The host needs Chromium system libs installed (libglib2.0 etc).
    """
    width, height = _page_dims(page_size)
    _prepare_windows_event_loop()

    from playwright.sync_api import sync_playwright

    logger.info(f"[PDF] Generating {page_size} PDF with Playwright/Chromium")

    try:
        with sync_playwright() as p:
            browser = p.chromium.launch(
                headless=True,
                args=["--no-sandbox", "--disable-dev-shm-usage"],
            )
            page = browser.new_page()
            page.emulate_media(media="print")
            page.set_content(html_str, wait_until="domcontentloaded", timeout=30_000)

            margin = f"{PAGE_MARGIN_MM}mm"
            pdf_bytes = page.pdf(
                width=f"{width}mm",
                height=f"{height}mm",
                print_background=True,
                margin={"top": margin, "bottom": margin, "left": margin, "right": margin},
            )

            browser.close()
            return pdf_bytes

    except Exception as e:
        logger.exception("[PDF] Playwright/Chromium PDF generation failed")
        raise RuntimeError(f"Playwright/Chromium PDF generation failed: {e}") from e


def render_cv_pdf_bytes(tree: PresentationTree, page_size: str = DEFAULT_PAGE_SIZE) -> bytes:
    html_str = render_cv_html(tree, page_size=page_size)
    return _render_pdf_with_playwright(html_str, page_size=page_size)


# ============================================================
# DOCX: CV
# ============================================================
def _photo_stream(photo: str) -> BytesIO | None:
    # data:image/png;base64,....
    if not photo or "," not in photo:
        return None
    header, payload = photo.split(",", 1)
    if not header.startswith("data:image/") or ";base64" not in header:
        return None
    # Word can't embed svg/webp directly
    if not any(t in header for t in ("png", "jpeg", "jpg", "gif", "bmp")):
        return None
    try:
        return BytesIO(base64.b64decode(payload))
    except ValueError:
        logger.warning("[DOCX] Photo is not valid base64, leaving it out")
        return None


def render_cv_docx_bytes(tree: PresentationTree, page_size: str = DEFAULT_PAGE_SIZE) -> bytes:
    from docx.enum.text import WD_ALIGN_PARAGRAPH
    from docx.shared import Mm, Pt

    width, height = _page_dims(page_size)
    doc = Document()

    section = doc.sections[0]
    section.page_width = Mm(width)
    section.page_height = Mm(height)
    section.top_margin = Mm(PAGE_MARGIN_MM)
    section.bottom_margin = Mm(PAGE_MARGIN_MM)
    section.left_margin = Mm(PAGE_MARGIN_MM + 8)
    section.right_margin = Mm(PAGE_MARGIN_MM + 8)

    style = doc.styles["Normal"]
    style.font.name = "Georgia" if tree.template == "classic" else "Calibri"

    header = tree.header
    centered = tree.header_style in ("centered", "banner")

    photo = _photo_stream(header.photo)
    if photo is not None:
        pic_p = doc.add_paragraph()
        if centered:
            pic_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        pic_p.add_run().add_picture(photo, width=Mm(30))

    title_p = doc.add_paragraph()
    if centered:
        title_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
    r = title_p.add_run(header.full_name or "Curriculum Vitae")
    r.bold = True
    r.font.size = Pt(18)

    if header.title:
        p = doc.add_paragraph()
        if centered:
            p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        p.add_run(header.title)

    if header.contacts:
        contact_p = doc.add_paragraph(" | ".join(c.value for c in header.contacts))
        if centered:
            contact_p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        contact_p.paragraph_format.space_after = Pt(12)

    # Word has no columns here: main first, then the sidebar
    for sec in tree.sections():
        doc.add_heading(sec.title, level=2)

        if sec.key == "summary":
            doc.add_paragraph(sec.text)

        elif sec.key in ("experience", "education"):
            for entry in sec.entries:
                header_parts = [x for x in (entry.heading, entry.subheading) if x]
                h = doc.add_paragraph()
                h.add_run(" – ".join(header_parts)).bold = True

                meta_bits = [x for x in (entry.detail, entry.location, entry.date_range) if x]
                if meta_bits:
                    doc.add_paragraph(" | ".join(meta_bits))

                for line in entry.description.splitlines():
                    line = line.strip("• ").strip()
                    if line:
                        doc.add_paragraph(line, style="List Bullet")

        elif sec.key == "skills":
            if tree.template == "ats":
                doc.add_paragraph(", ".join(sec.items))
            else:
                for skill in sec.items:
                    doc.add_paragraph(skill, style="List Bullet")

        elif sec.key == "languages":
            for lang in sec.languages:
                line = f"{lang.name} – {lang.level}" if lang.level else lang.name
                doc.add_paragraph(line)

    bio = BytesIO()
    doc.save(bio)
    bio.seek(0)
    return bio.getvalue()

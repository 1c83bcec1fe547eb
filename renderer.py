# renderer.py
"""
CVRecord -> PresentationTree.

`build_sections` decides WHICH facts appear (shared by every template);
the five render_* variants only decide WHERE they go. `render` is the
single dispatch point on CVRecord.template.
"""
import re
from typing import Callable, Dict, List, Literal, Optional, Tuple

from pydantic import BaseModel, Field

from models import CVRecord

MONTHS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

PRESENT = "Present"

_YEAR_MONTH = re.compile(r"^\s*(\d{4})-(\d{1,2})\s*$")

SectionKey = Literal["summary", "experience", "education", "skills", "languages"]

SECTION_TITLES = {
    "summary": "Profile Summary",
    "experience": "Work Experience",
    "education": "Education",
    "skills": "Skills",
    "languages": "Languages",
}


class ContactItem(BaseModel):
    kind: str
    label: str
    value: str
    href: Optional[str] = None


class HeaderBlock(BaseModel):
    full_name: str
    title: str
    contacts: List[ContactItem] = Field(default_factory=list)
    photo: str = ""


class EntryItem(BaseModel):
    heading: str
    subheading: str = ""
    detail: str = ""
    location: str = ""
    date_range: str = ""
    description: str = ""


class LanguageItem(BaseModel):
    name: str
    level: str = ""


class Section(BaseModel):
    key: SectionKey
    title: str
    text: str = ""
    entries: List[EntryItem] = Field(default_factory=list)
    items: List[str] = Field(default_factory=list)
    languages: List[LanguageItem] = Field(default_factory=list)


class PresentationTree(BaseModel):
    template: str
    layout: Literal["single", "sidebar"] = "single"
    header_style: str = "left"
    header: HeaderBlock
    main: List[Section] = Field(default_factory=list)
    side: List[Section] = Field(default_factory=list)

    def sections(self) -> List[Section]:
        return self.main + self.side

    def section(self, key: str) -> Optional[Section]:
        for s in self.sections():
            if s.key == key:
                return s
        return None


# -------------------------
# Dates
# -------------------------
def format_month(value: str) -> str:
    """'2022-01' -> 'Jan 2022'. Empty stays empty; anything unparseable is shown as typed."""
    if not value or not value.strip():
        return ""
    m = _YEAR_MONTH.match(value)
    if not m:
        return value.strip()
    year, month = int(m.group(1)), int(m.group(2))
    if not 1 <= month <= 12:
        return value.strip()
    return f"{MONTHS[month - 1]} {year:04d}"


def format_date_range(start: str, end: str, open_end: str = "") -> str:
    """
    Experience passes open_end=PRESENT so an empty end date reads 'Present'.
    Education passes nothing: an empty end date is simply left out.
    """
    start_s = format_month(start)
    end_s = format_month(end) or open_end
    return " - ".join(p for p in (start_s, end_s) if p)


# -------------------------
# Shared content contract
# -------------------------
def _strip_scheme(url: str) -> str:
    return re.sub(r"^https?://", "", url)


def build_header(record: CVRecord) -> HeaderBlock:
    contacts: List[ContactItem] = []

    if record.email.strip():
        contacts.append(ContactItem(kind="email", label=record.email, value=record.email, href=f"mailto:{record.email}"))
    if record.phone.strip():
        contacts.append(ContactItem(kind="phone", label=record.phone, value=record.phone))
    if record.location.strip():
        contacts.append(ContactItem(kind="location", label=record.location, value=record.location))
    if record.website.strip():
        contacts.append(
            ContactItem(kind="website", label=_strip_scheme(record.website), value=record.website, href=record.website)
        )
    if record.linkedin.strip():
        contacts.append(ContactItem(kind="linkedin", label="LinkedIn", value=record.linkedin, href=record.linkedin))
    if record.github.strip():
        contacts.append(ContactItem(kind="github", label="GitHub", value=record.github, href=record.github))

    return HeaderBlock(
        full_name=record.full_name,
        title=record.title,
        contacts=contacts,
        photo=record.photo or "",
    )


def build_sections(record: CVRecord) -> Tuple[HeaderBlock, Dict[str, Section]]:
    """
    Header + every section that has content, keyed by section key.
    Sections with nothing to show are absent from the dict.
    """
    sections: Dict[str, Section] = {}

    if record.summary.strip():
        sections["summary"] = Section(key="summary", title=SECTION_TITLES["summary"], text=record.summary.strip())

    experience = [
        EntryItem(
            heading=exp.position,
            subheading=exp.company,
            location=exp.location,
            date_range=format_date_range(exp.start_date, exp.end_date, open_end=PRESENT),
            description=exp.description.strip(),
        )
        for exp in record.experience
        if not exp.is_blank()
    ]
    if experience:
        sections["experience"] = Section(key="experience", title=SECTION_TITLES["experience"], entries=experience)

    education = [
        EntryItem(
            heading=edu.degree,
            subheading=edu.school,
            detail=edu.field,
            date_range=format_date_range(edu.start_date, edu.end_date),
            description=edu.description.strip(),
        )
        for edu in record.education
        if not edu.is_blank()
    ]
    if education:
        sections["education"] = Section(key="education", title=SECTION_TITLES["education"], entries=education)

    skills = [s.strip() for s in record.skills if s and s.strip()]
    if skills:
        sections["skills"] = Section(key="skills", title=SECTION_TITLES["skills"], items=skills)

    languages = [LanguageItem(name=lang.name, level=lang.level) for lang in record.languages if not lang.is_blank()]
    if languages:
        sections["languages"] = Section(key="languages", title=SECTION_TITLES["languages"], languages=languages)

    return build_header(record), sections


def _pick(sections: Dict[str, Section], order: List[str]) -> List[Section]:
    return [sections[k] for k in order if k in sections]


# -------------------------
# Template variants
# -------------------------
def render_modern(record: CVRecord) -> PresentationTree:
    header, sections = build_sections(record)
    return PresentationTree(
        template="modern",
        layout="sidebar",
        header_style="bold",
        header=header,
        main=_pick(sections, ["summary", "experience", "education"]),
        side=_pick(sections, ["skills", "languages"]),
    )


def render_classic(record: CVRecord) -> PresentationTree:
    header, sections = build_sections(record)
    return PresentationTree(
        template="classic",
        header_style="centered",
        header=header,
        main=_pick(sections, ["summary", "experience", "education", "skills", "languages"]),
    )


def render_minimal(record: CVRecord) -> PresentationTree:
    header, sections = build_sections(record)
    return PresentationTree(
        template="minimal",
        header_style="left",
        header=header,
        main=_pick(sections, ["summary", "experience", "education", "skills", "languages"]),
    )


def render_professional(record: CVRecord) -> PresentationTree:
    header, sections = build_sections(record)
    return PresentationTree(
        template="professional",
        layout="sidebar",
        header_style="banner",
        header=header,
        main=_pick(sections, ["summary", "experience"]),
        side=_pick(sections, ["education", "skills", "languages"]),
    )


def render_ats(record: CVRecord) -> PresentationTree:
    header, sections = build_sections(record)
    main = _pick(sections, ["summary", "skills", "experience", "education", "languages"])
    # plain upper-case headings parse best in applicant tracking systems
    main = [s.model_copy(update={"title": s.title.upper()}) for s in main]
    return PresentationTree(
        template="ats",
        header_style="plain",
        header=header,
        main=main,
    )


RENDERERS: Dict[str, Callable[[CVRecord], PresentationTree]] = {
    "modern": render_modern,
    "classic": render_classic,
    "minimal": render_minimal,
    "professional": render_professional,
    "ats": render_ats,
}


def render(record: CVRecord) -> PresentationTree:
    return RENDERERS[record.template](record)

"""Unit tests for the template renderer and its shared content contract."""

import pytest

from models import CVRecord, EducationEntry, ExperienceEntry, LanguageEntry
from renderer import RENDERERS, format_date_range, format_month, render
from sample_data import sample_cv

TEMPLATE_IDS = list(RENDERERS)


def facts(tree):
    """Everything about the candidate a tree shows, independent of layout."""
    shown = {
        "header": (tree.header.full_name, tree.header.title, tuple(c.value for c in tree.header.contacts), tree.header.photo),
    }
    for sec in tree.sections():
        shown[sec.key] = (
            sec.text,
            tuple(e.model_dump_json() for e in sec.entries),
            tuple(sec.items),
            tuple(lang.model_dump_json() for lang in sec.languages),
        )
    return shown


def with_template(record, template_id):
    return record.model_copy(update={"template": template_id})


# -------------------------
# Dates
# -------------------------
@pytest.mark.unit
def test_format_month():
    assert format_month("2022-01") == "Jan 2022"
    assert format_month("2019-12") == "Dec 2019"
    assert format_month("") == ""
    assert format_month("soon") == "soon"
    assert format_month("2022-13") == "2022-13"


@pytest.mark.unit
def test_experience_open_end_is_present():
    assert format_date_range("2021-01", "", open_end="Present") == "Jan 2021 - Present"
    assert format_date_range("2021-01", "2022-01", open_end="Present") == "Jan 2021 - Jan 2022"


@pytest.mark.unit
def test_education_open_end_is_not_present():
    # education never gets "Present", the end token is left out
    record = CVRecord(education=[EducationEntry(school="MIT", degree="PhD", start_date="2020-09", end_date="")])
    for template_id in TEMPLATE_IDS:
        tree = render(with_template(record, template_id))
        entry = tree.section("education").entries[0]
        assert entry.date_range == "Sep 2020"
        assert "Present" not in entry.date_range


# -------------------------
# Section predicates
# -------------------------
@pytest.mark.unit
@pytest.mark.parametrize("template_id", TEMPLATE_IDS)
def test_jane_doe_experience(jane, template_id):
    tree = render(with_template(jane, template_id))
    exp = tree.section("experience")

    assert exp is not None
    entry = exp.entries[0]
    assert entry.heading == "Dev"
    assert entry.subheading == "Acme"
    assert entry.date_range.endswith("Present")


@pytest.mark.unit
@pytest.mark.parametrize("template_id", TEMPLATE_IDS)
def test_blank_skills_render_no_section(template_id):
    record = CVRecord(full_name="Jane Doe", skills=["", "  "], template=template_id)
    assert render(record).section("skills") is None


@pytest.mark.unit
@pytest.mark.parametrize("template_id", TEMPLATE_IDS)
def test_blank_record_renders_only_header(template_id):
    tree = render(CVRecord(template=template_id))
    assert tree.sections() == []
    assert tree.header.contacts == []


@pytest.mark.unit
def test_blank_entries_are_skipped(jane):
    jane.experience.append(ExperienceEntry(location="Nowhere", description="no company, no position"))
    jane.education.insert(0, EducationEntry(field="Only a field"))

    tree = render(jane)
    assert len(tree.section("experience").entries) == 1
    assert len(tree.section("education").entries) == 1


@pytest.mark.unit
def test_entry_with_only_position_is_kept():
    record = CVRecord(experience=[ExperienceEntry(position="Freelancer")])
    assert render(record).section("experience").entries[0].heading == "Freelancer"


@pytest.mark.unit
def test_skills_filtered_in_order(jane):
    assert render(jane).section("skills").items == ["Python", "SQL"]


@pytest.mark.unit
def test_languages_without_name_filtered(jane):
    langs = render(jane).section("languages").languages
    assert [(lang.name, lang.level) for lang in langs] == [("English", "Native")]


@pytest.mark.unit
def test_languages_section_needs_a_name():
    record = CVRecord(languages=[LanguageEntry(name="", level="Fluent")])
    assert render(record).section("languages") is None


@pytest.mark.unit
def test_summary_only_when_not_blank():
    assert render(CVRecord(summary="   ")).section("summary") is None
    assert render(CVRecord(summary="Hello")).section("summary").text == "Hello"


# -------------------------
# Header
# -------------------------
@pytest.mark.unit
def test_header_contacts_only_non_empty():
    record = CVRecord(full_name="Jane", email="jane@example.com", github="https://github.com/jane")
    kinds = [c.kind for c in render(record).header.contacts]
    assert kinds == ["email", "github"]


@pytest.mark.unit
def test_website_label_drops_scheme():
    record = CVRecord(website="https://jane.dev")
    contact = render(record).header.contacts[0]
    assert contact.label == "jane.dev"
    assert contact.href == "https://jane.dev"


# -------------------------
# Content invariance across templates
# -------------------------
@pytest.mark.unit
@pytest.mark.parametrize("template_id", TEMPLATE_IDS)
def test_same_facts_in_every_template(template_id):
    record = sample_cv()
    record.photo = "data:image/png;base64,AAAA"
    baseline = facts(render(with_template(record, "modern")))

    tree = render(with_template(record, template_id))
    shown = facts(tree)

    assert tree.template == template_id
    # section titles may change case (ATS), the facts never do
    assert shown == baseline


@pytest.mark.unit
def test_modern_to_ats_keeps_entries(jane):
    modern = render(with_template(jane, "modern"))
    ats = render(with_template(jane, "ats"))

    for key in ("experience", "education", "skills", "languages"):
        assert modern.section(key).entries == ats.section(key).entries
        assert modern.section(key).items == ats.section(key).items
        assert modern.section(key).languages == ats.section(key).languages


@pytest.mark.unit
def test_dispatch_covers_all_templates():
    assert set(RENDERERS) == {"modern", "classic", "minimal", "professional", "ats"}
    record = sample_cv()
    layouts = {render(with_template(record, t)).layout for t in RENDERERS}
    assert layouts == {"single", "sidebar"}

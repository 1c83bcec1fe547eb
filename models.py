# models.py
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

TemplateId = Literal["modern", "classic", "minimal", "professional", "ats"]

DEFAULT_TEMPLATE: TemplateId = "modern"

LANGUAGE_LEVELS = ["Native", "Fluent", "Advanced", "Intermediate", "Basic"]


class _Model(BaseModel):
    # Stored JSON keeps camelCase keys (fullName, startDate, ...)
    # assignments are validated as well
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, validate_assignment=True)


class EducationEntry(_Model):
    school: str = ""
    degree: str = ""
    field: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""

    def is_blank(self) -> bool:
        return not (self.school or self.degree)


class ExperienceEntry(_Model):
    company: str = ""
    position: str = ""
    location: str = ""
    start_date: str = ""
    end_date: str = ""  # empty = current position
    description: str = ""

    def is_blank(self) -> bool:
        return not (self.company or self.position)


class LanguageEntry(_Model):
    name: str = ""
    level: str = ""

    def is_blank(self) -> bool:
        return not self.name


class CVRecord(_Model):
    full_name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    website: str = ""
    linkedin: str = ""
    github: str = ""

    # data:image/...;base64,... or empty
    photo: str = ""

    summary: str = ""
    template: TemplateId = DEFAULT_TEMPLATE

    education: List[EducationEntry] = Field(default_factory=list)
    experience: List[ExperienceEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    languages: List[LanguageEntry] = Field(default_factory=list)

    @model_validator(mode="after")
    def _seed_blank_rows(self) -> "CVRecord":
        """
        Every repeated collection keeps at least one row so the form
        always has an input to show. Blank rows are dropped at render time.
        """
        if not self.education:
            self.education.append(EducationEntry())
        if not self.experience:
            self.experience.append(ExperienceEntry())
        if not self.skills:
            self.skills.append("")
        if not self.languages:
            self.languages.append(LanguageEntry())
        return self


# collection name -> blank row factory (skills rows are plain strings)
ROW_FACTORIES = {
    "education": EducationEntry,
    "experience": ExperienceEntry,
    "skills": str,
    "languages": LanguageEntry,
}


class Draft(_Model):
    id: str
    name: str
    data: CVRecord = Field(default_factory=CVRecord)
    created_at: str
    updated_at: str


class TemplateInfo(BaseModel):
    id: TemplateId
    name: str
    description: str


TEMPLATES: List[TemplateInfo] = [
    TemplateInfo(id="modern", name="Modern", description="Bold neobrutalism design"),
    TemplateInfo(id="classic", name="Classic", description="Traditional serif style"),
    TemplateInfo(id="minimal", name="Minimal", description="Clean and spacious"),
    TemplateInfo(id="professional", name="Professional", description="Corporate gradient style"),
    TemplateInfo(id="ats", name="ATS-Friendly", description="Optimized for job systems"),
]


def get_template_info(template_id: str) -> Optional[TemplateInfo]:
    for info in TEMPLATES:
        if info.id == template_id:
            return info
    return None

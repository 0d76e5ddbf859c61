from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

LanguageSource = Literal["heuristic", "model", "explicit"]


class LanguageTag(BaseModel):
    lang: str = Field(default="en", min_length=2, max_length=16)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    rtl: bool = False
    source: LanguageSource = "heuristic"


class ContactInfo(BaseModel):
    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    links: list[str] = Field(default_factory=list)


class ExperienceEntry(BaseModel):
    company: str = ""
    title: str = ""
    start_date: str = ""
    end_date: str = ""
    achievements: list[str] = Field(default_factory=list)


class EducationEntry(BaseModel):
    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""


class Skills(BaseModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)


class ProjectEntry(BaseModel):
    name: str = ""
    description: str = ""
    technologies: list[str] = Field(default_factory=list)


class ResumeDocument(BaseModel):
    summary: str = ""
    contact: ContactInfo = Field(default_factory=ContactInfo)
    experience: list[ExperienceEntry] = Field(default_factory=list)
    education: list[EducationEntry] = Field(default_factory=list)
    skills: Skills = Field(default_factory=Skills)
    projects: list[ProjectEntry] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    language: LanguageTag = Field(default_factory=LanguageTag)

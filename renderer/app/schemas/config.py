"""
Typed configuration records loaded from the config spreadsheet.

Records are frozen: a snapshot is never mutated after loading, it is
replaced wholesale when the cache expires.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Template(BaseModel):
    model_config = ConfigDict(frozen=True)

    template_key: str
    display_name: str = ""
    engine: str = ""
    doc_template_id: str
    output_filename_pattern: str = ""
    required_placeholders: List[str] = Field(default_factory=list)
    default_package_key: str = ""
    keep_intermediate_doc: bool = False
    version: str = ""
    is_active: bool = True
    notes: str = ""

    @property
    def label(self) -> str:
        return self.display_name or self.template_key


class ExamPackage(BaseModel):
    """Exams are kept as the sheet wrote them: any JSON array is accepted."""

    model_config = ConfigDict(frozen=True)

    package_key: str
    display_name: str = ""
    exams: List[Any] = Field(default_factory=list)
    default_template_key: str = ""
    version: str = ""
    is_active: bool = True
    notes: str = ""


class ConfigSnapshot(BaseModel):
    """Active templates and exam packages, as served by GET /v1/config."""

    model_config = ConfigDict(frozen=True)

    templates: List[Template] = Field(default_factory=list)
    exam_packages: List[ExamPackage] = Field(default_factory=list)

    def find_template(self, template_key: Any) -> Optional[Template]:
        if not template_key:
            return None
        return next(
            (t for t in self.templates if t.template_key == template_key),
            None,
        )

    def find_package(self, package_key: Any) -> Optional[ExamPackage]:
        if not package_key:
            return None
        return next(
            (p for p in self.exam_packages if p.package_key == package_key),
            None,
        )

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator

DEFAULT_HTML = '<h1>Hello World</h1>'
DEFAULT_CODE = 'https://example.com'
DEFAULT_CODE_NAME = 'Sample Code'


class JobRequest(BaseModel):
    """Inbound job description. Absent or null fields fall back to defaults."""

    model_config = ConfigDict(frozen=True, extra='ignore')

    html: str = DEFAULT_HTML
    watermark_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices('watermarkUrl', 'watermark_url'),
    )
    code: str = DEFAULT_CODE
    code_name: str = Field(
        default=DEFAULT_CODE_NAME,
        validation_alias=AliasChoices('codeName', 'code_name'),
    )

    @field_validator('html', 'code', 'code_name', mode='before')
    @classmethod
    def _none_means_default(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return cls.model_fields[info.field_name].default
        return value

    @field_validator('watermark_url', mode='before')
    @classmethod
    def _blank_url_means_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AnnotationJob(BaseModel):
    model_config = ConfigDict(frozen=True)

    document_bytes: bytes
    code_image: bytes
    caption: str = ''
    watermark_image: bytes | None = None


class JobResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    pdf_base64: str = Field(serialization_alias='pdfBase64')
    pages: int
    watermark_applied: bool = Field(default=False, serialization_alias='watermarkApplied')
    warnings: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode='json', by_alias=True)

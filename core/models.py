import base64
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

MODALITY_TEXT = "text"
MODALITY_IMAGE = "image"
MODALITY_VIDEO = "video"
Modality = Literal[MODALITY_TEXT, MODALITY_IMAGE, MODALITY_VIDEO]

FIELD_TEXT = "text"
FIELD_TEXTAREA = "textarea"
FIELD_SELECT = "select"
FIELD_IMAGE = "image"
FIELD_URL = "url"
FieldKind = Literal[FIELD_TEXT, FIELD_TEXTAREA, FIELD_SELECT, FIELD_IMAGE, FIELD_URL]


class ToolDescriptor(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    key: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: str
    category: str
    icon: str
    redirect_url: Optional[str] = None

    @field_validator("redirect_url")
    @classmethod
    def ensure_redirect_is_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        if not (value.startswith("http://") or value.startswith("https://")):
            raise ValueError("redirect_url must be an http(s) URL")
        return value


class FieldSpec(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(min_length=1)
    label: str
    kind: FieldKind = FIELD_TEXT
    required: bool = False
    choices: List[str] = Field(default_factory=list)
    default: str = ""
    placeholder: str = ""
    generated: bool = False

    @model_validator(mode="after")
    def ensure_select_choices(self) -> "FieldSpec":
        if self.kind == FIELD_SELECT and not self.choices:
            raise ValueError(f"select field {self.name} needs choices")
        return self


class Attachment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data: bytes
    mime_type: str = Field(min_length=1)
    filename: Optional[str] = None

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")


class GenerationRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model: str = Field(min_length=1)
    prompt: str = Field(min_length=1)
    attachments: List[Attachment] = Field(default_factory=list)
    response_modality: Modality = MODALITY_TEXT
    system_instruction: Optional[str] = None
    response_schema: Optional[Dict[str, Any]] = None
    generation_config: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("model", "prompt")
    @classmethod
    def ensure_non_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("value must not be blank")
        return value

    @model_validator(mode="after")
    def ensure_modality_fields(self) -> "GenerationRequest":
        if self.response_modality == MODALITY_VIDEO and len(self.attachments) > 1:
            raise ValueError("video requests accept at most one image")
        if self.response_schema is not None and self.response_modality != MODALITY_TEXT:
            raise ValueError("response_schema is only supported for text output")
        return self


class GenerationResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: Modality
    text: Optional[str] = None
    data: Optional[bytes] = None
    mime_type: Optional[str] = None
    fields: Optional[Dict[str, str]] = None

    @model_validator(mode="after")
    def ensure_payload(self) -> "GenerationResult":
        if self.kind == MODALITY_TEXT and self.text is None:
            raise ValueError("text result requires text")
        if self.kind != MODALITY_TEXT and not self.data:
            raise ValueError(f"{self.kind} result requires data")
        return self

    def data_url(self) -> str:
        if not self.data:
            return ""
        mime = self.mime_type or "application/octet-stream"
        return f"data:{mime};base64,{base64.b64encode(self.data).decode('ascii')}"


class GenerationOperation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1)
    done: bool = False
    result_uri: Optional[str] = None
    error: Optional[str] = None


class LifecycleStatus(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    IN_FLIGHT = "in_flight"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


LOADING_STATUSES = {
    LifecycleStatus.VALIDATING,
    LifecycleStatus.IN_FLIGHT,
    LifecycleStatus.POLLING,
}


class ToolInvocationState(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fields: Dict[str, Any] = Field(default_factory=dict)
    status: LifecycleStatus = LifecycleStatus.IDLE
    error_message: Optional[str] = None
    result: Optional[GenerationResult] = None
    copied: bool = False
    credential_invalid: bool = False

    @model_validator(mode="after")
    def ensure_result_xor_error(self) -> "ToolInvocationState":
        if self.result is not None and self.error_message is not None:
            raise ValueError("result and error_message are mutually exclusive")
        if self.status == LifecycleStatus.SUCCEEDED and self.result is None:
            raise ValueError("succeeded state requires a result")
        if self.status == LifecycleStatus.FAILED and self.error_message is None:
            raise ValueError("failed state requires an error message")
        return self

    @property
    def is_loading(self) -> bool:
        return self.status in LOADING_STATUSES

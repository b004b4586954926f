import pytest
from pydantic import ValidationError

from core.models import (
    FIELD_SELECT,
    MODALITY_IMAGE,
    MODALITY_TEXT,
    MODALITY_VIDEO,
    Attachment,
    FieldSpec,
    GenerationRequest,
    GenerationResult,
    LifecycleStatus,
    ToolDescriptor,
    ToolInvocationState,
)


def _attachment() -> Attachment:
    return Attachment(data=b"hello", mime_type="image/png")


def test_tool_descriptor_rejects_non_http_redirect() -> None:
    with pytest.raises(ValidationError):
        ToolDescriptor(
            key="x",
            title="X",
            description="",
            category="Utilitários",
            icon="x",
            redirect_url="ftp://example.com",
        )


def test_select_field_requires_choices() -> None:
    with pytest.raises(ValidationError, match="needs choices"):
        FieldSpec(name="tone", label="Tom", kind=FIELD_SELECT)


def test_attachment_to_base64() -> None:
    assert _attachment().to_base64() == "aGVsbG8="


def test_generation_request_rejects_blank_prompt() -> None:
    with pytest.raises(ValidationError):
        GenerationRequest(model="gemini-2.5-flash", prompt="   ")


def test_generation_request_video_accepts_single_image() -> None:
    with pytest.raises(ValidationError, match="at most one image"):
        GenerationRequest(
            model="veo",
            prompt="spin",
            attachments=[_attachment(), _attachment()],
            response_modality=MODALITY_VIDEO,
        )


def test_generation_request_schema_only_for_text() -> None:
    with pytest.raises(ValidationError, match="response_schema"):
        GenerationRequest(
            model="gemini-2.5-flash-image",
            prompt="x",
            response_modality=MODALITY_IMAGE,
            response_schema={"type": "OBJECT"},
        )


def test_generation_result_requires_payload() -> None:
    with pytest.raises(ValidationError):
        GenerationResult(kind=MODALITY_IMAGE)
    with pytest.raises(ValidationError):
        GenerationResult(kind=MODALITY_TEXT)


def test_generation_result_data_url() -> None:
    result = GenerationResult(kind=MODALITY_IMAGE, data=b"hello", mime_type="image/png")
    assert result.data_url() == "data:image/png;base64,aGVsbG8="


def test_state_rejects_result_and_error_together() -> None:
    with pytest.raises(ValidationError, match="mutually exclusive"):
        ToolInvocationState(
            status=LifecycleStatus.FAILED,
            error_message="boom",
            result=GenerationResult(kind=MODALITY_TEXT, text="ok"),
        )


def test_state_succeeded_requires_result() -> None:
    with pytest.raises(ValidationError):
        ToolInvocationState(status=LifecycleStatus.SUCCEEDED)


def test_state_failed_requires_error() -> None:
    with pytest.raises(ValidationError):
        ToolInvocationState(status=LifecycleStatus.FAILED)


def test_state_is_loading() -> None:
    assert ToolInvocationState(status=LifecycleStatus.POLLING).is_loading
    assert not ToolInvocationState(status=LifecycleStatus.IDLE).is_loading

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from core.models import (
    FIELD_IMAGE,
    MODALITY_TEXT,
    FieldSpec,
    GenerationRequest,
    GenerationResult,
    Modality,
    ToolDescriptor,
)

VIEW_FORM = "form"
VIEW_PLACEHOLDER = "placeholder"
VIEW_REDIRECT = "redirect"

PLACEHOLDER_MESSAGE = "Esta ferramenta está em desenvolvimento e estará disponível em breve."
DEFAULT_ERROR_MESSAGE = (
    "Ocorreu um erro ao gerar o conteúdo. Verifique o console para mais detalhes."
)


class ToolHandler:
    view_kind = VIEW_PLACEHOLDER

    def __init__(self, descriptor: ToolDescriptor):
        self.descriptor = descriptor

    @property
    def key(self) -> str:
        return self.descriptor.key

    @property
    def title(self) -> str:
        return self.descriptor.title


class PlaceholderTool(ToolHandler):
    view_kind = VIEW_PLACEHOLDER
    message = PLACEHOLDER_MESSAGE


class RedirectTool(ToolHandler):
    view_kind = VIEW_REDIRECT

    @property
    def url(self) -> str:
        return self.descriptor.redirect_url or ""


def is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    return False


class GenerationTool(ToolHandler, ABC):
    """A form-backed tool that turns field values into one generation request.

    Subclasses declare their fields and the model to call, then implement
    ``build_request``. Image fields hold ``Attachment`` values; every other
    field holds a string.
    """

    view_kind = VIEW_FORM
    fields: Tuple[FieldSpec, ...] = ()
    model: str = ""
    modality: Modality = MODALITY_TEXT
    download_filename: Optional[str] = None
    requires_credential = False
    validation_message = "Por favor, preencha os campos obrigatórios."
    error_message = DEFAULT_ERROR_MESSAGE
    submit_label = "Gerar"
    loading_messages: Tuple[str, ...] = ("Gerando...",)
    empty_message = "O resultado aparecerá aqui"

    def field(self, name: str) -> FieldSpec:
        for spec in self.fields:
            if spec.name == name:
                return spec
        raise KeyError(name)

    def default_fields(self) -> Dict[str, Any]:
        return {
            spec.name: (None if spec.kind == FIELD_IMAGE else spec.default)
            for spec in self.fields
        }

    def missing_fields(self, values: Dict[str, Any]) -> List[str]:
        return [
            spec.name
            for spec in self.fields
            if spec.required and is_blank(values.get(spec.name))
        ]

    def on_field_changed(self, values: Dict[str, Any], name: str) -> Dict[str, Any]:
        return values

    @abstractmethod
    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        raise NotImplementedError

    def parse_result(self, result: GenerationResult) -> GenerationResult:
        return result

    def _text(self, values: Dict[str, Any], name: str) -> str:
        value = values.get(name)
        if value is None:
            return ""
        return str(value)

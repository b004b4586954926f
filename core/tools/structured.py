import json
from typing import Any, Dict, List

from core.models import (
    FIELD_SELECT,
    FIELD_TEXTAREA,
    MODALITY_TEXT,
    FieldSpec,
    GenerationRequest,
    GenerationResult,
)
from core.tools.base import GenerationTool
from core.tools.text import TONES

AD_PLATFORMS = ["Google Ads", "Meta Ads"]
AD_OUTPUT_FIELDS = {
    "headline": "Título",
    "description": "Descrição",
    "call_to_action": "Chamada para Ação",
}


def string_object_schema(names: List[str]) -> Dict[str, Any]:
    return {
        "type": "OBJECT",
        "properties": {name: {"type": "STRING"} for name in names},
        "required": list(names),
    }


class PpcAdsTool(GenerationTool):
    """Asks for JSON output and copies each property into a form field."""

    model = "gemini-2.5-flash"
    modality = MODALITY_TEXT
    download_filename = "anuncio-ppc.txt"
    fields = (
        FieldSpec(
            name="product",
            label="Produto ou Serviço",
            required=True,
            placeholder="Ex: Tênis de Corrida XYZ",
        ),
        FieldSpec(
            name="audience",
            label="Público-alvo (Opcional)",
            placeholder="Ex: Corredores amadores de 25 a 40 anos",
        ),
        FieldSpec(
            name="platform",
            label="Plataforma",
            kind=FIELD_SELECT,
            choices=AD_PLATFORMS,
            default=AD_PLATFORMS[0],
        ),
        FieldSpec(
            name="tone",
            label="Tom do Anúncio",
            kind=FIELD_SELECT,
            choices=TONES,
            default=TONES[0],
        ),
        FieldSpec(name="headline", label="Título", generated=True),
        FieldSpec(name="description", label="Descrição", kind=FIELD_TEXTAREA, generated=True),
        FieldSpec(name="call_to_action", label="Chamada para Ação", generated=True),
    )
    validation_message = "Por favor, informe o produto ou serviço do anúncio."
    error_message = "Ocorreu um erro ao gerar o anúncio. Verifique o console para mais detalhes."
    submit_label = "Gerar Anúncio"
    empty_message = "Seu anúncio aparecerá aqui"

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        lines = [
            f"Crie um anúncio de alta conversão para {self._text(values, 'platform')} "
            f'sobre o produto "{self._text(values, "product")}".',
            f'O tom do anúncio deve ser "{self._text(values, "tone")}".',
        ]
        audience = self._text(values, "audience")
        if audience:
            lines.append(f'O público-alvo é "{audience}".')
        lines.append(
            "Responda em português do Brasil com um título curto, uma descrição "
            "e uma chamada para ação."
        )
        return GenerationRequest(
            model=self.model,
            prompt="\n".join(lines),
            response_schema=string_object_schema(list(AD_OUTPUT_FIELDS)),
        )

    def parse_result(self, result: GenerationResult) -> GenerationResult:
        try:
            raw = json.loads(result.text or "")
        except ValueError as exc:
            raise ValueError(f"structured output is not valid JSON: {exc}") from exc
        if not isinstance(raw, dict):
            raise ValueError("structured output must be a JSON object")
        fields = {name: str(raw.get(name, "")).strip() for name in AD_OUTPUT_FIELDS}
        text = "\n".join(f"{label}: {fields[name]}" for name, label in AD_OUTPUT_FIELDS.items())
        return GenerationResult(kind=MODALITY_TEXT, text=text, fields=fields)

from typing import Any, Dict

from core.models import FIELD_IMAGE, FIELD_TEXTAREA, MODALITY_IMAGE, FieldSpec, GenerationRequest
from core.tools.base import GenerationTool

IMAGE_MODEL = "gemini-2.5-flash-image"
BACKGROUND_REMOVAL_PROMPT = (
    "remove the background of this image. The new background should be transparent."
)


class VisualVariationsTool(GenerationTool):
    model = IMAGE_MODEL
    modality = MODALITY_IMAGE
    download_filename = "variacao-ia.png"
    fields = (
        FieldSpec(name="image", label="1. Envie sua Imagem", kind=FIELD_IMAGE, required=True),
        FieldSpec(
            name="prompt",
            label="2. Descreva a Alteração",
            kind=FIELD_TEXTAREA,
            required=True,
            placeholder=(
                "Ex: Adicione um chapéu de sol na pessoa. Mude a cor do carro para vermelho. "
                "Transforme o cenário em um dia de neve."
            ),
        ),
    )
    validation_message = "Por favor, envie uma imagem e descreva a alteração desejada."
    error_message = "Ocorreu um erro ao gerar a variação. Verifique o console para mais detalhes."
    submit_label = "Gerar Variação"
    loading_messages = ("A IA está reimaginando sua foto...",)
    empty_message = "Sua variação visual aparecerá aqui"

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=self._text(values, "prompt"),
            attachments=[values["image"]],
            response_modality=MODALITY_IMAGE,
        )


class BackgroundRemoverTool(GenerationTool):
    model = IMAGE_MODEL
    modality = MODALITY_IMAGE
    download_filename = "image-sem-fundo.png"
    fields = (
        FieldSpec(name="image", label="1. Envie sua Imagem", kind=FIELD_IMAGE, required=True),
    )
    validation_message = "Por favor, envie uma imagem primeiro."
    error_message = "Ocorreu um erro ao remover o fundo. Verifique o console para mais detalhes."
    submit_label = "Remover Fundo"
    loading_messages = ("A mágica está acontecendo...",)
    empty_message = "Seu resultado aparecerá aqui"

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=BACKGROUND_REMOVAL_PROMPT,
            attachments=[values["image"]],
            response_modality=MODALITY_IMAGE,
        )

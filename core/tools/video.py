from typing import Any, Dict

from core.models import FIELD_IMAGE, MODALITY_VIDEO, FieldSpec, GenerationRequest
from core.tools.base import GenerationTool

MOCKUP_PROMPT = (
    "Create a 360-degree, slow-spinning product video of the object in this image. "
    "The background should be a clean, neutral studio light gray (#f3f4f6). "
    "The object should be perfectly centered and well-lit from all angles, simulating "
    "a professional product photoshoot. The rotation should be smooth and continuous."
)


class Mockup3DTool(GenerationTool):
    model = "veo-3.1-fast-generate-preview"
    modality = MODALITY_VIDEO
    download_filename = "mockup-3d.mp4"
    requires_credential = True
    fields = (
        FieldSpec(
            name="image",
            label="1. Envie a Imagem do Produto",
            kind=FIELD_IMAGE,
            required=True,
        ),
    )
    validation_message = "Por favor, envie uma imagem primeiro."
    error_message = "Ocorreu um erro ao gerar o vídeo. Verifique o console."
    submit_label = "Gerar Mockup 3D"
    loading_messages = (
        "Inicializando o motor de renderização...",
        "Analisando a geometria da imagem 2D...",
        "Extrudando pixels para a terceira dimensão...",
        "Aplicando texturas e materiais fotorrealistas...",
        "Configurando a iluminação do estúdio virtual...",
        "Renderizando a rotação de 360 graus, quadro a quadro...",
        "Compilando os quadros em um vídeo de alta definição...",
        "Adicionando os toques finais de polimento...",
        "Quase pronto! Finalizando o seu mockup 3D...",
    )
    empty_message = "Seu mockup 3D/360° aparecerá aqui"
    credential_notice = (
        "Esta ferramenta utiliza um modelo de geração de vídeo avançado (Veo) que requer "
        "que você selecione uma chave de API para habilitar o faturamento."
    )

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        return GenerationRequest(
            model=self.model,
            prompt=MOCKUP_PROMPT,
            attachments=[values["image"]],
            response_modality=MODALITY_VIDEO,
            generation_config={
                "numberOfVideos": 1,
                "resolution": "720p",
                "aspectRatio": "1:1",
            },
        )

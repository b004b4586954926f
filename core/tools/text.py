from typing import Any, Dict, List

from core.models import (
    FIELD_IMAGE,
    FIELD_SELECT,
    FIELD_TEXTAREA,
    FIELD_URL,
    MODALITY_TEXT,
    FieldSpec,
    GenerationRequest,
)
from core.tools.base import GenerationTool, is_blank

NOTIFICATION_TYPES = [
    "Venda Aprovada",
    "Pix Recebido",
    "Boleto Gerado",
    "Produto Enviado",
    "Entrega Realizada",
    "Reembolso Solicitado",
]
TONES = ["Profissional", "Amigável", "Entusiasmado", "Urgente"]
CAPTION_PLATFORMS = ["Instagram", "Facebook", "TikTok", "LinkedIn"]
CAPTION_QUANTITIES = ["1", "3", "5"]

MARKETING_SYSTEM_INSTRUCTION = (
    "Você é um copywriter especialista em marketing. Gere conteúdo de marketing "
    "persuasivo e de alta conversão. A saída deve ser em português do Brasil e "
    "formatada com Markdown (por exemplo, usando títulos, listas e negrito)."
)


class NotificationTool(GenerationTool):
    model = "gemini-2.5-flash"
    modality = MODALITY_TEXT
    download_filename = "notificacao.txt"
    fields = (
        FieldSpec(
            name="notification_type",
            label="Tipo de Notificação",
            kind=FIELD_SELECT,
            choices=NOTIFICATION_TYPES,
            default=NOTIFICATION_TYPES[0],
        ),
        FieldSpec(
            name="customer",
            label="Nome do Cliente",
            required=True,
            placeholder="Ex: João da Silva",
        ),
        FieldSpec(
            name="product",
            label="Nome do Produto",
            required=True,
            placeholder="Ex: Tênis de Corrida XYZ",
        ),
        FieldSpec(name="value", label="Valor (R$)", required=True, placeholder="Ex: 199,90"),
        FieldSpec(
            name="additional_info",
            label="Informações Adicionais (Opcional)",
            kind=FIELD_TEXTAREA,
            placeholder="Ex: Cód. de Rastreio: BR123XYZ",
        ),
        FieldSpec(
            name="tone",
            label="Tom da Mensagem",
            kind=FIELD_SELECT,
            choices=TONES,
            default=TONES[0],
        ),
    )
    validation_message = (
        "Por favor, preencha os campos obrigatórios: "
        "Nome do Cliente, Nome do Produto e Valor."
    )
    error_message = (
        "Ocorreu um erro ao gerar a notificação. Verifique o console para mais detalhes."
    )
    submit_label = "Gerar Notificação"
    empty_message = "Sua notificação aparecerá aqui"

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        additional = self._text(values, "additional_info")
        extra_line = (
            f'Informações adicionais a serem incluídas: "{additional}".' if additional else ""
        )
        kind = self._text(values, "notification_type")
        prompt = "\n".join(
            [
                f'Crie uma notificação de transação do tipo "{kind}" '
                f'para o cliente "{self._text(values, "customer")}".',
                f'O produto é "{self._text(values, "product")}" '
                f'no valor de R${self._text(values, "value")}.',
                f'O tom da mensagem deve ser "{self._text(values, "tone")}".',
                extra_line,
                "A notificação deve ser concisa, clara e objetiva, adequada para ser enviada "
                "por WhatsApp ou SMS. Não inclua saudações genéricas como \"Olá,\" no início, "
                "comece direto com o nome do cliente se necessário ou a informação principal.",
            ]
        )
        return GenerationRequest(model=self.model, prompt=prompt)


class CaptionTool(GenerationTool):
    model = "gemini-2.5-flash"
    modality = MODALITY_TEXT
    download_filename = "legendas.txt"
    fields = (
        FieldSpec(
            name="description",
            label="Descreva o seu post",
            kind=FIELD_TEXTAREA,
            required=True,
            placeholder="Ex: Foto do novo tênis de corrida em uma trilha ao pôr do sol",
        ),
        FieldSpec(
            name="platform",
            label="Rede Social",
            kind=FIELD_SELECT,
            choices=CAPTION_PLATFORMS,
            default=CAPTION_PLATFORMS[0],
        ),
        FieldSpec(
            name="tone",
            label="Tom da Legenda",
            kind=FIELD_SELECT,
            choices=TONES,
            default=TONES[1],
        ),
        FieldSpec(
            name="quantity",
            label="Quantidade de Opções",
            kind=FIELD_SELECT,
            choices=CAPTION_QUANTITIES,
            default="3",
        ),
    )
    validation_message = "Por favor, descreva o seu post."
    error_message = "Ocorreu um erro ao gerar as legendas. Verifique o console para mais detalhes."
    submit_label = "Gerar Legendas"
    empty_message = "Suas legendas aparecerão aqui"

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        prompt = "\n".join(
            [
                f"Crie {self._text(values, 'quantity')} opções de legenda para um post "
                f"no {self._text(values, 'platform')}.",
                f'Descrição do post: "{self._text(values, "description")}".',
                f'O tom deve ser "{self._text(values, "tone")}".',
                "Inclua emojis quando fizer sentido e sugira hashtags relevantes ao final "
                "de cada legenda.",
                "Formate a resposta em Markdown, com cada legenda como um item de lista.",
            ]
        )
        return GenerationRequest(model=self.model, prompt=prompt)


class MarketingContentTool(GenerationTool):
    model = "gemini-2.5-pro"
    modality = MODALITY_TEXT
    download_filename = "conteudo-marketing.md"
    fields = (
        FieldSpec(name="image", label="Imagem do produto", kind=FIELD_IMAGE),
        FieldSpec(
            name="url",
            label="Cole a URL de um produto ou página",
            kind=FIELD_URL,
            placeholder="https://exemplo.com/produto",
        ),
        FieldSpec(
            name="prompt",
            label="Instruções Adicionais (Opcional)",
            kind=FIELD_TEXTAREA,
            placeholder=(
                "Ex: Foque no público jovem, use um tom divertido, "
                "crie 3 opções de copy para Instagram..."
            ),
        ),
    )
    validation_message = "Por favor, envie uma imagem ou insira um link."
    error_message = "Ocorreu um erro ao gerar o conteúdo. Verifique o console para mais detalhes."
    submit_label = "Gerar Conteúdo"
    loading_messages = ("A IA está criando algo incrível...",)
    empty_message = "Seu conteúdo de marketing aparecerá aqui"

    def missing_fields(self, values: Dict[str, Any]) -> List[str]:
        if is_blank(values.get("image")) and is_blank(values.get("url")):
            return ["image", "url"]
        return []

    def on_field_changed(self, values: Dict[str, Any], name: str) -> Dict[str, Any]:
        # image and URL are alternative inputs
        if name == "image" and values.get("image") is not None:
            return {**values, "url": ""}
        if name == "url" and not is_blank(values.get("url")):
            return {**values, "image": None}
        return values

    def build_request(self, values: Dict[str, Any]) -> GenerationRequest:
        image = values.get("image")
        url = self._text(values, "url")
        extra = self._text(values, "prompt")

        prompt = "Gere um conteúdo de marketing com base na seguinte entrada."
        attachments = []
        if image is not None:
            attachments.append(image)
            prompt += " Analise a imagem fornecida."
        if url:
            prompt += f" Analise o conteúdo desta URL: {url}."
        if extra:
            prompt += f'\n\nInstruções adicionais do usuário: "{extra}"'

        return GenerationRequest(
            model=self.model,
            prompt=prompt,
            attachments=attachments,
            system_instruction=MARKETING_SYSTEM_INSTRUCTION,
        )

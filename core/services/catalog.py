import json
import os
from pathlib import Path
from typing import Dict, List, Optional

from core.io_utils import ensure_dir, is_url, json_dump
from core.models import ToolDescriptor

CATEGORY_VISUAL = "Visual & Imagem"
CATEGORY_STRATEGY = "Estratégia & Análise"
CATEGORY_CONTENT = "Conteúdo & Copy"
CATEGORY_UTILITIES = "Utilitários"
CATEGORIES = [CATEGORY_VISUAL, CATEGORY_STRATEGY, CATEGORY_CONTENT, CATEGORY_UTILITIES]

TOOL_CATALOG = [
    ToolDescriptor(
        key="mockup-3d",
        title="Gerador de Mockups 3D",
        description="Transforme imagens 2D em visualizações 3D ou 360° imersivas e profissionais.",
        category=CATEGORY_VISUAL,
        icon="cube-transparent",
    ),
    ToolDescriptor(
        key="profitability-calculator",
        title="Calculadora de Lucratividade",
        description="Simule cenários, compare marketplaces e otimize suas vendas no Brasil.",
        category=CATEGORY_STRATEGY,
        icon="currency-dollar",
    ),
    ToolDescriptor(
        key="faq-generator",
        title="Gerador de FAQ",
        description=(
            "Faça upload da imagem de um produto e crie 40 perguntas e respostas frequentes."
        ),
        category=CATEGORY_CONTENT,
        icon="chat-bubble-bottom-center-text",
    ),
    ToolDescriptor(
        key="caption-generator",
        title="Gerador de Legendas",
        description=(
            "Descreva seu post e deixe a IA criar legendas perfeitas para suas redes sociais."
        ),
        category=CATEGORY_CONTENT,
        icon="pencil-square",
    ),
    ToolDescriptor(
        key="watermark-remover",
        title="Removedor de Marcas D'água",
        description=(
            "Limpe suas imagens com o poder da inteligência artificial para um look profissional."
        ),
        category=CATEGORY_VISUAL,
        icon="sparkles",
    ),
    ToolDescriptor(
        key="policy-generator",
        title="Gerador de Políticas",
        description="Crie políticas de troca e devolução profissionais para sua loja em segundos.",
        category=CATEGORY_STRATEGY,
        icon="document-text",
    ),
    ToolDescriptor(
        key="banner-generator",
        title="Gerador de Banners",
        description="Crie banners promocionais de alta conversão para marketplaces em segundos.",
        category=CATEGORY_VISUAL,
        icon="photo",
    ),
    ToolDescriptor(
        key="marketing-content",
        title="Gerador de Conteúdo de Marketing",
        description=(
            "Envie uma imagem ou link e a IA criará textos de alta conversão "
            "para suas necessidades."
        ),
        category=CATEGORY_CONTENT,
        icon="cpu-chip",
    ),
    ToolDescriptor(
        key="ad-optimizer",
        title="Otimizador de Anúncios",
        description="Cole a URL do seu produto e deixe a IA analisar e criar um anúncio perfeito.",
        category=CATEGORY_CONTENT,
        icon="adjustments-horizontal",
    ),
    ToolDescriptor(
        key="ppc-ads",
        title="Gerador de Anúncios (PPC)",
        description="Crie textos de anúncios de alta conversão para Google Ads e Meta Ads.",
        category=CATEGORY_CONTENT,
        icon="presentation-chart-line",
    ),
    ToolDescriptor(
        key="names-slogans",
        title="Gerador de Nomes e Slogans",
        description="Crie nomes criativos e slogans memoráveis para seus produtos e marcas.",
        category=CATEGORY_STRATEGY,
        icon="light-bulb",
    ),
    ToolDescriptor(
        key="post-generator",
        title="Gerador de Posts (Blog/Social)",
        description=(
            "Produza artigos e posts otimizados para SEO e engajamento em múltiplas plataformas."
        ),
        category=CATEGORY_CONTENT,
        icon="hashtag",
    ),
    ToolDescriptor(
        key="live-scripts",
        title="Gerador de Roteiros para Lives",
        description="Crie scripts detalhados e interativos para suas lives de vendas e lançamentos.",
        category=CATEGORY_STRATEGY,
        icon="film",
    ),
    ToolDescriptor(
        key="meme-generator",
        title="Gerador de Memes",
        description="Transforme imagens em conteúdo viral com humor e criatividade gerados por IA.",
        category=CATEGORY_VISUAL,
        icon="heart",
    ),
    ToolDescriptor(
        key="stories-images",
        title="Gerador de Imagens para Stories",
        description=(
            "Crie visuais incríveis para seus stories. "
            "Descreva um cenário e deixe a IA fazer a mágica."
        ),
        category=CATEGORY_VISUAL,
        icon="device-phone-mobile",
    ),
    ToolDescriptor(
        key="pricing-strategy",
        title="Gerador de Estratégias de Preço",
        description="Simule preços ideais com base em custos, concorrência e demanda sazonal.",
        category=CATEGORY_STRATEGY,
        icon="beaker",
    ),
    ToolDescriptor(
        key="file-converters",
        title="Conversores de Arquivos",
        description="Converta imagens e arquivos PDF para diversos formatos com facilidade.",
        category=CATEGORY_UTILITIES,
        icon="document-duplicate",
    ),
    ToolDescriptor(
        key="coupon-generator",
        title="Gerador de Cupons",
        description="Crie, gerencie e valide cupons de desconto para suas campanhas de marketing.",
        category=CATEGORY_UTILITIES,
        icon="ticket",
    ),
    ToolDescriptor(
        key="google-shopping-ads",
        title="Anúncios Google Shopping",
        description=(
            "Gere e otimize seus anúncios para a plataforma Google Shopping automaticamente."
        ),
        category=CATEGORY_CONTENT,
        icon="shopping-cart",
    ),
    ToolDescriptor(
        key="notification-generator",
        title="Gerador de Notificações",
        description=(
            "Crie e personalize alertas de transações com um design profissional "
            "e tom de voz customizado."
        ),
        category=CATEGORY_UTILITIES,
        icon="bell",
    ),
    ToolDescriptor(
        key="visual-variations",
        title="Gerador de Variações Visuais com IA",
        description="Envie uma imagem, descreva a alteração e deixe a IA criar algo novo para você.",
        category=CATEGORY_VISUAL,
        icon="paint-brush",
    ),
    ToolDescriptor(
        key="background-remover",
        title="Removedor de Fundo Profissional",
        description="Com a tecnologia do Gemini AI, remova fundos de imagens com um clique.",
        category=CATEGORY_VISUAL,
        icon="scissors",
    ),
    ToolDescriptor(
        key="translator",
        title="Tradutor",
        description="Traduza textos e descrições de produtos para outros idiomas.",
        category=CATEGORY_UTILITIES,
        icon="language",
        redirect_url="https://tradutor-nine.vercel.app/",
    ),
    ToolDescriptor(
        key="pix-receipt",
        title="Gerador de Comprovante PIX",
        description="Gere comprovantes de transferências PIX de forma rápida.",
        category=CATEGORY_UTILITIES,
        icon="qr-code",
    ),
]

REDIRECTS_ENV = "MARKET_SUITE_REDIRECTS_PATH"
DEFAULT_REDIRECTS_FILE = "tool_redirects.json"


def list_tools(category: Optional[str] = None) -> List[ToolDescriptor]:
    if category and category not in CATEGORIES:
        raise ValueError(f"unknown category: {category}")
    overrides = _load_redirect_overrides()
    tools: List[ToolDescriptor] = []
    for tool in TOOL_CATALOG:
        if category and tool.category != category:
            continue
        tools.append(_apply_override(tool, overrides))
    return tools


def list_tool_entries(category: Optional[str] = None) -> List[Dict[str, str]]:
    return [
        {
            "key": tool.key,
            "title": tool.title,
            "category": tool.category,
            "redirect": tool.redirect_url or "",
            "description": tool.description,
        }
        for tool in list_tools(category)
    ]


def get_tool(key: str) -> ToolDescriptor:
    key = key.strip()
    for tool in TOOL_CATALOG:
        if tool.key == key:
            return _apply_override(tool, _load_redirect_overrides())
    raise ValueError(f"unknown tool: {key}")


def list_redirects() -> Dict[str, str]:
    return {tool.key: tool.redirect_url for tool in list_tools() if tool.redirect_url}


def set_redirect_override(key: str, url: str) -> ToolDescriptor:
    key = key.strip()
    url = url.strip()
    _builtin_tool(key)
    if not is_url(url):
        raise ValueError(f"redirect url must start with http:// or https://: {url}")
    overrides = _load_redirect_overrides()
    overrides[key] = url
    _save_redirect_overrides(overrides)
    return get_tool(key)


def clear_redirect_override(key: str) -> bool:
    """Make a tool open inline again. Returns False when it had no redirect."""
    key = key.strip()
    builtin = _builtin_tool(key)
    overrides = _load_redirect_overrides()
    if not _apply_override(builtin, overrides).redirect_url:
        return False
    if builtin.redirect_url:
        # null in the file masks the built-in redirect
        overrides[key] = None
    else:
        overrides.pop(key, None)
    _save_redirect_overrides(overrides)
    return True


def _builtin_tool(key: str) -> ToolDescriptor:
    for tool in TOOL_CATALOG:
        if tool.key == key:
            return tool
    raise ValueError(f"unknown tool: {key}")


def _apply_override(
    tool: ToolDescriptor, overrides: Dict[str, Optional[str]]
) -> ToolDescriptor:
    if tool.key not in overrides:
        return tool
    return tool.model_copy(update={"redirect_url": overrides[tool.key]})


def _redirects_path() -> Path:
    value = os.getenv(REDIRECTS_ENV, "").strip()
    if value:
        path = Path(value).expanduser()
    else:
        path = Path.cwd() / DEFAULT_REDIRECTS_FILE
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def _load_redirect_overrides() -> Dict[str, Optional[str]]:
    path = _redirects_path()
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return {}
    if not isinstance(raw, dict):
        return {}

    known = {tool.key for tool in TOOL_CATALOG}
    overrides: Dict[str, Optional[str]] = {}
    for key, value in raw.items():
        if key not in known:
            continue
        if value is None:
            overrides[key] = None
        elif isinstance(value, str) and is_url(value.strip()):
            overrides[key] = value.strip()
    return overrides


def _save_redirect_overrides(overrides: Dict[str, Optional[str]]) -> None:
    path = _redirects_path()
    ensure_dir(path.parent)
    json_dump(path, overrides)

import asyncio
import contextlib
import logging
import subprocess
import time
import webbrowser
from pathlib import Path
from typing import Any, Dict, Optional

from rich.text import Text
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Select,
    Static,
    TextArea,
)

from core.controller import LifecycleController
from core.io_utils import accept_dropped_image, describe_image
from core.models import (
    FIELD_IMAGE,
    FIELD_SELECT,
    FIELD_TEXTAREA,
    MODALITY_TEXT,
    MODALITY_VIDEO,
    FieldSpec,
    LifecycleStatus,
    ToolInvocationState,
)
from core.renderer import describe_result
from core.services import (
    CATEGORIES,
    ServiceConfig,
    build_adapter,
    load_config_from_env,
    save_api_key,
)
from core.tools import (
    VIEW_FORM,
    VIEW_PLACEHOLDER,
    VIEW_REDIRECT,
    GenerationTool,
    PlaceholderTool,
    RedirectTool,
    ToolHandler,
    build_tool_registry,
)
from ui.tui.render import markdown_to_rich

LOGGER = logging.getLogger("market_suite")

SELECT_ALL = "__all__"
FIELD_ID_PREFIX = "field-"
LOADING_MESSAGE_SECONDS = 4
HERO_TEXT = (
    "Sua central de marketing com Inteligência Artificial. Todas as ferramentas que você "
    "precisa para criar anúncios perfeitos e dominar os marketplaces."
)
UNSUPPORTED_IMAGE_MESSAGE = "Arquivo ignorado: envie uma imagem PNG, JPEG ou WEBP."
VIEW_LABELS = {
    VIEW_FORM: "Disponível",
    VIEW_PLACEHOLDER: "Em breve",
    VIEW_REDIRECT: "Abre no navegador",
}


class CatalogScreen(Screen[None]):
    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with VerticalScroll(classes="section"):
            yield Static(Text("Market Suite", style="bold"), id="hero-title")
            yield Static(HERO_TEXT, id="hero-text")
            yield Select(
                options=[("Todas as categorias", SELECT_ALL)]
                + [(category, category) for category in CATEGORIES],
                value=SELECT_ALL,
                allow_blank=False,
                id="catalog-category",
            )
            yield DataTable(id="catalog-table", cursor_type="row")
            yield Static("", id="catalog-description")
            yield Static("Selecione uma ferramenta e pressione Enter.", id="catalog-status")
        yield Footer()

    def on_mount(self) -> None:
        self._refresh_table()

    def on_screen_resume(self) -> None:
        self._refresh_table()

    @on(Select.Changed, "#catalog-category")
    def on_category_changed(self) -> None:
        self._refresh_table()

    @on(DataTable.RowHighlighted, "#catalog-table")
    def on_tool_highlighted(self, event: DataTable.RowHighlighted) -> None:
        handler = self.app.registry.get(str(event.row_key.value))
        if handler is None:
            return
        self.query_one("#catalog-description", Static).update(
            Text(handler.descriptor.description)
        )

    @on(DataTable.RowSelected, "#catalog-table")
    def on_tool_selected(self, event: DataTable.RowSelected) -> None:
        handler = self.app.registry.get(str(event.row_key.value))
        if handler is not None:
            self.app.open_tool(handler)

    def set_status(self, message: str) -> None:
        self.query_one("#catalog-status", Static).update(Text(message))

    def _refresh_table(self) -> None:
        self.app.reload_registry()
        category = self.query_one("#catalog-category", Select).value
        table = self.query_one("#catalog-table", DataTable)
        if not table.columns:
            table.add_columns("Ferramenta", "Categoria", "Status")
        table.clear()
        for handler in self.app.registry.values():
            descriptor = handler.descriptor
            if category not in (SELECT_ALL, None) and descriptor.category != category:
                continue
            table.add_row(
                descriptor.title,
                descriptor.category,
                VIEW_LABELS.get(handler.view_kind, handler.view_kind),
                key=descriptor.key,
            )


class PlaceholderScreen(Screen[None]):
    BINDINGS = [Binding("escape", "back", "Voltar", show=True)]

    def __init__(self, handler: PlaceholderTool) -> None:
        super().__init__()
        self.handler = handler

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Vertical(classes="section"):
            yield Static(Text(self.handler.title, style="bold"), classes="tool-title")
            yield Static(self.handler.descriptor.description)
            yield Static(Text(self.handler.message), id="placeholder-message")
            yield Button("Voltar para Ferramentas", id="back")
        yield Footer()

    @on(Button.Pressed, "#back")
    def action_back(self) -> None:
        self.app.pop_screen()


class ToolScreen(Screen[None]):
    BINDINGS = [Binding("escape", "back", "Voltar", show=True)]

    def __init__(self, handler: GenerationTool, config: ServiceConfig) -> None:
        super().__init__()
        self.handler = handler
        self.controller = LifecycleController(handler, build_adapter(config), config)
        self._generate_task: Optional[asyncio.Task[None]] = None
        self._generate_watch_task: Optional[asyncio.Task[None]] = None
        self._generate_progress_task: Optional[asyncio.Task[None]] = None
        self._generate_started_at: float = 0.0
        self._generate_latest_log: str = ""
        self._generate_log_handler: Optional[logging.Handler] = None
        self._generate_log_prev_level: Optional[int] = None
        self._saved_video: Optional[Path] = None
        self._leaving = False
        self.status_message = ""
        self.image_notes: Dict[str, str] = {}

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with VerticalScroll(classes="section"):
            yield Static(Text(self.handler.title, style="bold"), classes="tool-title")
            yield Static(self.handler.descriptor.description)
            if self.handler.requires_credential:
                with Vertical(id="credential-panel"):
                    yield Static(Text("Chave de API Necessária", style="bold"))
                    yield Static(getattr(self.handler, "credential_notice", ""))
                    yield Input(
                        placeholder="GEMINI_API_KEY",
                        password=True,
                        id="api-key",
                    )
                    yield Button("Selecionar Chave de API", id="save-key")
            for spec in self.handler.fields:
                yield Static(spec.label, classes="field-label")
                yield self._field_widget(spec)
                if spec.kind == FIELD_IMAGE:
                    yield Static("", id=f"preview-{spec.name}", classes="field-hint")
            with Horizontal(classes="form-row"):
                yield Button(self.handler.submit_label, id="generate", variant="primary")
                yield Button("Copiar", id="copy")
                yield Button("Baixar", id="download")
                yield Button("Voltar", id="back")
            yield Static("", id="tool-status")
            yield Static("", id="tool-result")
        yield Footer()

    def on_mount(self) -> None:
        self._render_state(self.controller.state)

    def on_unmount(self) -> None:
        # the worker thread may still be running; its tasks must not touch removed widgets
        self._leaving = True
        self.controller.cancel()
        for task in (self._generate_progress_task, self._generate_watch_task):
            if task and not task.done():
                task.cancel()
        self._detach_log_handler()

    def _field_widget(self, spec: FieldSpec) -> Any:
        widget_id = f"{FIELD_ID_PREFIX}{spec.name}"
        if spec.kind == FIELD_SELECT:
            return Select(
                options=[(choice, choice) for choice in spec.choices],
                value=spec.default or spec.choices[0],
                allow_blank=False,
                id=widget_id,
            )
        if spec.kind == FIELD_TEXTAREA:
            return TextArea(spec.default, id=widget_id, classes="field-textarea")
        if spec.kind == FIELD_IMAGE:
            return Input(
                placeholder="Arraste e solte uma imagem aqui ou cole o caminho do arquivo",
                id=widget_id,
            )
        return Input(value=spec.default, placeholder=spec.placeholder, id=widget_id)

    @on(Input.Changed)
    def on_input_changed(self, event: Input.Changed) -> None:
        name = self._field_name(event.input.id)
        if name is None:
            return
        spec = self.handler.field(name)
        if spec.kind == FIELD_IMAGE:
            self._on_image_changed(name, event.value)
            return
        self._apply_field(name, event.value)

    @on(TextArea.Changed)
    def on_textarea_changed(self, event: TextArea.Changed) -> None:
        name = self._field_name(event.text_area.id)
        if name is not None:
            self._apply_field(name, event.text_area.text)

    @on(Select.Changed)
    def on_select_changed(self, event: Select.Changed) -> None:
        name = self._field_name(event.select.id)
        if name is not None and isinstance(event.value, str):
            self._apply_field(name, event.value)

    def _on_image_changed(self, name: str, value: str) -> None:
        if not value.strip():
            self._set_image_note(name, "")
            self._apply_field(name, None)
            return
        attachment = accept_dropped_image(value)
        if attachment is None:
            self._set_image_note(name, UNSUPPORTED_IMAGE_MESSAGE, style="yellow")
            return
        self._set_image_note(name, f"{attachment.filename}: {describe_image(attachment.data)}")
        self._apply_field(name, attachment)

    def _set_image_note(self, name: str, message: str, style: str = "") -> None:
        self.image_notes[name] = message
        self.query_one(f"#preview-{name}", Static).update(Text(message, style=style))

    def _apply_field(self, name: str, value: Any) -> None:
        before = self.controller.state.fields
        state = self.controller.update_field(name, value)
        if state.fields == before:
            return
        # only the values the field hook rewrote go back into the widgets
        touched = {
            key: item
            for key, item in state.fields.items()
            if key != name and before.get(key) != item
        }
        self._sync_widgets(touched)
        self._render_state(state)

    @on(Button.Pressed, "#generate")
    def on_generate(self) -> None:
        self._start_generate()

    @on(Button.Pressed, "#copy")
    def on_copy(self) -> None:
        try:
            copied = self.controller.copy()
        except (RuntimeError, OSError, subprocess.CalledProcessError) as exc:
            self._set_status(f"Falha ao copiar: {exc}")
            return
        self._set_status("Copiado!" if copied else "Nada para copiar.")

    @on(Button.Pressed, "#download")
    def on_download(self) -> None:
        try:
            path = self.controller.download()
        except OSError as exc:
            self._set_status(f"Falha ao salvar: {exc}")
            return
        if path is None:
            self._set_status("Nada para baixar.")
            return
        if self.handler.modality == MODALITY_VIDEO:
            self._saved_video = path
            self._render_state(self.controller.state)
        self._set_status(f"Salvo em {path}")

    @on(Button.Pressed, "#save-key")
    def on_save_key(self) -> None:
        key_input = self.query_one("#api-key", Input)
        try:
            save_api_key(key_input.value)
        except (ValueError, OSError) as exc:
            self._set_status(f"Chave não salva: {exc}")
            return
        config = load_config_from_env()
        self.app.config = config
        self.controller.use_config(config, build_adapter(config))
        key_input.value = ""
        self._render_state(self.controller.state)
        self._set_status("Chave de API salva em .env.")

    @on(Button.Pressed, "#back")
    def action_back(self) -> None:
        self.controller.cancel()
        self.app.pop_screen()

    def _start_generate(self) -> None:
        if self._generate_task and not self._generate_task.done():
            self._set_status("Uma geração já está em andamento.")
            return
        self._set_controls_disabled(True)
        self._generate_started_at = time.monotonic()
        self._generate_latest_log = ""
        self._saved_video = None
        self._attach_log_handler()
        self._generate_task = asyncio.create_task(self._run_worker())
        self._generate_progress_task = asyncio.create_task(self._run_progress())
        self._generate_watch_task = asyncio.create_task(self._wait_done())

    async def _run_worker(self) -> None:
        await asyncio.to_thread(self.controller.submit)

    async def _wait_done(self) -> None:
        if not self._generate_task:
            return
        try:
            await self._generate_task
        except Exception as exc:  # noqa: BLE001
            self._set_status(f"Falha: {exc}")
        finally:
            if self._generate_progress_task and not self._generate_progress_task.done():
                self._generate_progress_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._generate_progress_task
            self._detach_log_handler()
            self._generate_task = None
            self._generate_watch_task = None
            self._generate_progress_task = None
            if not self._leaving:
                state = self.controller.state
                generated = {
                    spec.name: state.fields.get(spec.name)
                    for spec in self.handler.fields
                    if spec.generated
                }
                self._sync_widgets(generated)
                self._render_state(state)

    async def _run_progress(self) -> None:
        spinner = "|/-\\"
        messages = self.handler.loading_messages
        index = 0
        while self._generate_task and not self._generate_task.done() and not self._leaving:
            elapsed = time.monotonic() - self._generate_started_at
            message = messages[int(elapsed // LOADING_MESSAGE_SECONDS) % len(messages)]
            line = f"{spinner[index % len(spinner)]} {message} {int(elapsed)}s"
            if self.handler.modality == MODALITY_VIDEO:
                line += "\n(Este processo pode levar alguns minutos)"
            if self._generate_latest_log:
                line += f"\nlog: {self._generate_latest_log}"
            self._set_status(line)
            index += 1
            await asyncio.sleep(0.2)

    def _render_state(self, state: ToolInvocationState) -> None:
        panel = self.query("#credential-panel")
        if panel:
            panel.first().display = (
                not self.controller.config.has_credential or state.credential_invalid
            )

        if not state.is_loading:
            self._set_controls_disabled(False)
        result_view = self.query_one("#tool-result", Static)
        if state.status == LifecycleStatus.FAILED:
            self._set_status(f"Oops! Algo deu errado.\n{state.error_message}")
            result_view.update("")
        elif state.status == LifecycleStatus.SUCCEEDED and state.result is not None:
            self._set_status("Pronto.")
            if state.result.kind == MODALITY_TEXT:
                result_view.update(markdown_to_rich(state.result.text or ""))
            else:
                summary = describe_result(state.result)
                if self._saved_video is not None:
                    summary += f"\nAbrir no player: {self._saved_video.resolve().as_uri()}"
                else:
                    summary += "\nUse Baixar para salvar o arquivo."
                result_view.update(Text(summary))
        elif not state.is_loading:
            self._set_status(self.handler.empty_message)
            result_view.update("")

    def _sync_widgets(self, fields: Dict[str, Any]) -> None:
        for name, value in fields.items():
            spec = self.handler.field(name)
            widget = self.query_one(f"#{FIELD_ID_PREFIX}{name}")
            if spec.kind == FIELD_IMAGE:
                if value is None and isinstance(widget, Input) and widget.value:
                    widget.value = ""
                continue
            text = "" if value is None else str(value)
            if isinstance(widget, Input) and widget.value != text:
                widget.value = text
            elif isinstance(widget, TextArea) and widget.text != text:
                widget.text = text

    def _set_controls_disabled(self, disabled: bool) -> None:
        for spec in self.handler.fields:
            self.query_one(f"#{FIELD_ID_PREFIX}{spec.name}").disabled = disabled
        self.query_one("#generate", Button).disabled = (
            disabled or not self.controller.can_submit()
        )
        self.query_one("#copy", Button).disabled = disabled or not self.controller.can_copy()
        self.query_one("#download", Button).disabled = (
            disabled or not self.controller.can_download()
        )

    def _set_status(self, message: str) -> None:
        self.status_message = message
        if not self._leaving:
            self.query_one("#tool-status", Static).update(Text(message))

    @staticmethod
    def _field_name(widget_id: Optional[str]) -> Optional[str]:
        if not widget_id or not widget_id.startswith(FIELD_ID_PREFIX):
            return None
        return widget_id[len(FIELD_ID_PREFIX) :]

    def _attach_log_handler(self) -> None:
        if self._generate_log_handler is not None:
            return

        screen = self

        class _TuiLogHandler(logging.Handler):
            def emit(self, record: logging.LogRecord) -> None:
                screen._generate_latest_log = self.format(record)

        handler = _TuiLogHandler()
        handler.setLevel(logging.INFO)
        handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
        LOGGER.addHandler(handler)
        self._generate_log_prev_level = LOGGER.level
        LOGGER.setLevel(logging.INFO)
        self._generate_log_handler = handler

    def _detach_log_handler(self) -> None:
        if self._generate_log_handler is None:
            return
        LOGGER.removeHandler(self._generate_log_handler)
        self._generate_log_handler = None
        if self._generate_log_prev_level is not None:
            LOGGER.setLevel(self._generate_log_prev_level)
            self._generate_log_prev_level = None


class MarketSuiteApp(App[None]):
    TITLE = "Market Suite"
    BINDINGS = [Binding("ctrl+q", "quit", "Sair", show=True)]

    CSS = """
    .section {
        padding: 1;
    }

    .form-row {
        height: auto;
        margin: 1 0;
    }

    .form-row > Button {
        margin-right: 1;
    }

    .tool-title, #hero-title {
        text-style: bold;
        color: $accent;
    }

    #hero-text, #catalog-description, .field-hint {
        color: $text-muted;
        height: auto;
    }

    .field-label {
        margin-top: 1;
    }

    .field-textarea {
        height: 6;
        border: solid $accent;
    }

    #catalog-table {
        height: auto;
        max-height: 24;
    }

    #credential-panel {
        height: auto;
        border: solid $warning;
        padding: 0 1;
    }

    #tool-status, #catalog-status {
        height: auto;
        min-height: 3;
        border: solid $primary;
        padding: 0 1;
    }

    #tool-result {
        height: auto;
        padding: 1;
    }
    """

    def __init__(self, config: ServiceConfig) -> None:
        super().__init__()
        self.config = config
        self.registry: Dict[str, ToolHandler] = {}

    def on_mount(self) -> None:
        self.reload_registry()
        self.push_screen(CatalogScreen())

    def reload_registry(self) -> None:
        self.registry = build_tool_registry()

    def open_tool(self, handler: ToolHandler) -> None:
        if isinstance(handler, RedirectTool):
            self._open_redirect(handler)
        elif isinstance(handler, GenerationTool):
            self.push_screen(ToolScreen(handler, self.config))
        elif isinstance(handler, PlaceholderTool):
            self.push_screen(PlaceholderScreen(handler))

    def _open_redirect(self, handler: RedirectTool) -> None:
        LOGGER.info("redirecting %s to %s", handler.key, handler.url)
        opened = webbrowser.open(handler.url, new=2)
        screen = self.screen
        if isinstance(screen, CatalogScreen):
            if opened:
                screen.set_status(f"Abrindo {handler.title} em uma nova aba...")
            else:
                screen.set_status(f"Abra no navegador: {handler.url}")


def run_tui_app(output_dir: Optional[str] = None) -> None:
    config = load_config_from_env()
    if output_dir:
        config = config.model_copy(update={"output_dir": output_dir})
    app = MarketSuiteApp(config=config)
    app.run()

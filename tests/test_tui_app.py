import asyncio
import threading
from pathlib import Path
from typing import Any, List, Optional

import pytest
from PIL import Image
from textual.widgets import Button, Input

from core.models import MODALITY_TEXT, GenerationRequest, GenerationResult, LifecycleStatus
from core.services.generation import ServiceConfig
from ui.tui.app import UNSUPPORTED_IMAGE_MESSAGE, MarketSuiteApp, ToolScreen


class FakeService:
    def __init__(self, text: str = "**Olá** João", release: Optional[threading.Event] = None):
        self.text = text
        self.release = release
        self.requests: List[GenerationRequest] = []

    def generate(self, request: GenerationRequest) -> Any:
        self.requests.append(request)
        if self.release is not None:
            self.release.wait(5)
        return GenerationResult(kind=MODALITY_TEXT, text=self.text)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("MARKET_SUITE_REDIRECTS_PATH", str(tmp_path / "tool_redirects.json"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)


def _install(monkeypatch: pytest.MonkeyPatch, service: FakeService) -> MarketSuiteApp:
    monkeypatch.setattr("ui.tui.app.build_adapter", lambda config: service)
    return MarketSuiteApp(config=ServiceConfig(api_key="test_key", poll_interval_seconds=0))


async def _open(app: MarketSuiteApp, pilot: Any, key: str) -> ToolScreen:
    app.open_tool(app.registry[key])
    await pilot.pause()
    screen = app.screen
    assert isinstance(screen, ToolScreen)
    return screen


async def _fill_notification(screen: ToolScreen, pilot: Any) -> None:
    screen.query_one("#field-customer", Input).value = "João"
    screen.query_one("#field-product", Input).value = "Tênis"
    screen.query_one("#field-value", Input).value = "199,90"
    await pilot.pause()


async def _wait_finished(screen: ToolScreen, pilot: Any) -> None:
    for _ in range(100):
        if screen._generate_task is None:
            return
        await pilot.pause(0.05)
    raise AssertionError("generation did not finish")


def test_generate_sends_one_request_and_renders_result(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    service = FakeService()
    app = _install(monkeypatch, service)

    async def scenario() -> None:
        async with app.run_test() as pilot:
            screen = await _open(app, pilot, "notification-generator")
            await _fill_notification(screen, pilot)
            assert screen.controller.state.fields["customer"] == "João"

            screen.query_one("#generate", Button).press()
            await pilot.pause()
            await _wait_finished(screen, pilot)
            await pilot.pause()

            state = screen.controller.state
            assert state.status == LifecycleStatus.SUCCEEDED
            assert state.result is not None and state.result.text == "**Olá** João"
            assert screen.status_message == "Pronto."
            assert screen.query_one("#copy", Button).disabled is False
            # the inputs keep their values and the result stays on screen
            assert screen.query_one("#field-customer", Input).value == "João"
            assert screen.controller.state.status == LifecycleStatus.SUCCEEDED

    asyncio.run(scenario())
    assert len(service.requests) == 1
    assert 'para o cliente "João"' in service.requests[0].prompt


def test_generate_button_disabled_while_loading(monkeypatch: pytest.MonkeyPatch) -> None:
    release = threading.Event()
    service = FakeService(release=release)
    app = _install(monkeypatch, service)

    async def scenario() -> None:
        async with app.run_test() as pilot:
            screen = await _open(app, pilot, "notification-generator")
            await _fill_notification(screen, pilot)
            button = screen.query_one("#generate", Button)
            assert button.disabled is False

            button.press()
            await pilot.pause()
            assert button.disabled is True
            assert screen.query_one("#field-customer", Input).disabled is True
            button.press()
            await pilot.pause()

            release.set()
            await _wait_finished(screen, pilot)
            await pilot.pause()
            assert button.disabled is False

    try:
        asyncio.run(scenario())
    finally:
        release.set()
    assert len(service.requests) == 1


def test_unsupported_drop_leaves_image_unset(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    dropped = tmp_path / "notes.txt"
    dropped.write_text("not an image", encoding="utf-8")
    app = _install(monkeypatch, FakeService())

    async def scenario() -> None:
        async with app.run_test() as pilot:
            screen = await _open(app, pilot, "background-remover")
            screen.query_one("#field-image", Input).value = str(dropped)
            await pilot.pause()

            assert screen.controller.state.fields["image"] is None
            assert screen.image_notes["image"] == UNSUPPORTED_IMAGE_MESSAGE
            assert screen.query_one("#generate", Button).disabled is True

    asyncio.run(scenario())


def test_image_drop_clears_url_field(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    picture = tmp_path / "produto.png"
    Image.new("RGB", (4, 3), color=(255, 0, 0)).save(picture)
    app = _install(monkeypatch, FakeService())

    async def scenario() -> None:
        async with app.run_test() as pilot:
            screen = await _open(app, pilot, "marketing-content")
            screen.query_one("#field-url", Input).value = "https://loja.example.com/p/1"
            await pilot.pause()
            screen.query_one("#field-image", Input).value = str(picture)
            await pilot.pause()
            await pilot.pause()

            fields = screen.controller.state.fields
            assert fields["image"] is not None
            assert fields["image"].filename == "produto.png"
            assert fields["url"] == ""
            assert screen.query_one("#field-url", Input).value == ""
            assert screen.image_notes["image"].startswith("produto.png: PNG 4x3")

    asyncio.run(scenario())


def test_back_while_generating_stops_screen_tasks(monkeypatch: pytest.MonkeyPatch) -> None:
    release = threading.Event()
    service = FakeService(release=release)
    app = _install(monkeypatch, service)
    tasks: List[asyncio.Task] = []

    async def scenario() -> None:
        async with app.run_test() as pilot:
            screen = await _open(app, pilot, "notification-generator")
            await _fill_notification(screen, pilot)
            screen.query_one("#generate", Button).press()
            await pilot.pause()
            assert screen._generate_watch_task is not None
            tasks.extend(
                task
                for task in (screen._generate_watch_task, screen._generate_progress_task)
                if task is not None
            )

            screen.query_one("#back", Button).press()
            await pilot.pause()
            await pilot.pause()
            assert app.screen is not screen

            release.set()
            for _ in range(100):
                if screen.controller.state.status == LifecycleStatus.IDLE:
                    break
                await pilot.pause(0.05)
            assert all(task.done() for task in tasks)
            assert screen.controller.state.status == LifecycleStatus.IDLE

    try:
        asyncio.run(scenario())
    finally:
        release.set()
    assert len(tasks) == 2
    for task in tasks:
        assert task.cancelled() or task.exception() is None

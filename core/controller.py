"""Per-tool lifecycle: validate, call the generation service, poll, render.

One controller owns one tool view. All state transitions happen under a lock
and publish a fresh ``ToolInvocationState`` snapshot, so the UI thread can read
``controller.state`` while a request runs on a worker thread.
"""

import logging
import threading
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from adapters.base import GenerationServiceError, OperationNotFoundError
from core.models import (
    MODALITY_VIDEO,
    GenerationOperation,
    GenerationResult,
    LifecycleStatus,
    ToolInvocationState,
)
from core.renderer import copy_text, copy_to_clipboard, save_download
from core.services.generation import ServiceConfig
from core.tools.base import GenerationTool

LOGGER = logging.getLogger("market_suite")

CREDENTIAL_REQUIRED_MESSAGE = (
    "Chave de API Necessária. Selecione uma chave de API para usar esta ferramenta."
)
CREDENTIAL_INVALID_MESSAGE = (
    "Sua chave de API pode ter expirado ou é inválida. Por favor, selecione a chave novamente."
)
NO_VIDEO_RESULT_MESSAGE = "A geração do vídeo não retornou um resultado válido."
POLL_TIMEOUT_MESSAGE = (
    "A geração demorou mais do que o esperado e foi interrompida. Tente novamente."
)


class ResultMissingError(RuntimeError):
    pass


class LifecycleController:
    def __init__(self, handler: GenerationTool, service: Any, config: ServiceConfig):
        self.handler = handler
        self.service = service
        self.config = config
        self._lock = threading.Lock()
        self._cancel = threading.Event()
        self._state = ToolInvocationState(fields=handler.default_fields())

    @property
    def state(self) -> ToolInvocationState:
        with self._lock:
            return self._state.model_copy(update={"fields": dict(self._state.fields)})

    def use_config(self, config: ServiceConfig, service: Any) -> None:
        """Swap in a new credential, e.g. after the user selects another key."""
        with self._lock:
            self.config = config
            self.service = service
            self._state = self._state.model_copy(update={"credential_invalid": False})

    def can_submit(self) -> bool:
        with self._lock:
            if self._state.is_loading:
                return False
            if self.handler.requires_credential and not self._credential_ok():
                return False
            return not self.handler.missing_fields(self._state.fields)

    def can_copy(self) -> bool:
        with self._lock:
            result = self._state.result
            return result is not None and bool(copy_text(result))

    def can_download(self) -> bool:
        with self._lock:
            return self._state.result is not None and bool(self.handler.download_filename)

    def update_field(self, name: str, value: Any) -> ToolInvocationState:
        self.handler.field(name)
        with self._lock:
            if self._state.is_loading:
                LOGGER.warning(
                    "%s: field %s not changed while a request runs", self.handler.key, name
                )
                return self._state
            if self._state.fields.get(name) == value:
                return self._state
            fields = self._merge_fields({name: value})
            self._state = self._next(fields=fields, status=LifecycleStatus.IDLE)
            return self._state

    def submit(self, fields: Optional[Dict[str, Any]] = None) -> ToolInvocationState:
        with self._lock:
            if self._state.is_loading:
                LOGGER.warning(
                    "%s: submit rejected, a request is already running", self.handler.key
                )
                return self._state
            values = self._merge_fields(fields or {})
            self._state = self._next(fields=values, status=LifecycleStatus.VALIDATING)

            missing = self.handler.missing_fields(values)
            if missing:
                self._state = self._next(
                    status=LifecycleStatus.FAILED,
                    error_message=self.handler.validation_message,
                )
                return self._state
            if self.handler.requires_credential and not self._credential_ok():
                self._state = self._next(
                    status=LifecycleStatus.FAILED,
                    error_message=(
                        CREDENTIAL_INVALID_MESSAGE
                        if self._state.credential_invalid
                        else CREDENTIAL_REQUIRED_MESSAGE
                    ),
                )
                return self._state

            self._cancel.clear()
            self._state = self._next(status=LifecycleStatus.IN_FLIGHT)

        self._execute(values)
        return self.state

    def on_success(self, result: GenerationResult) -> ToolInvocationState:
        with self._lock:
            fields = dict(self._state.fields)
            if result.fields:
                fields.update(result.fields)
            self._state = self._next(
                fields=fields,
                status=LifecycleStatus.SUCCEEDED,
                result=result,
            )
            return self._state

    def on_failure(self, message: str, credential_invalid: bool = False) -> ToolInvocationState:
        with self._lock:
            self._state = self._next(
                status=LifecycleStatus.FAILED,
                error_message=message,
                credential_invalid=self._state.credential_invalid or credential_invalid,
            )
            return self._state

    def reset(self) -> ToolInvocationState:
        with self._lock:
            if self._state.is_loading:
                LOGGER.warning("%s: reset ignored while a request runs", self.handler.key)
                return self._state
            self._state = self._next(status=LifecycleStatus.IDLE)
            return self._state

    def cancel(self) -> None:
        self._cancel.set()

    def copy(self, clipboard: Optional[Callable[[str], None]] = None) -> bool:
        with self._lock:
            result = self._state.result
        if result is None:
            return False
        text = copy_text(result)
        if not text:
            return False
        (clipboard or copy_to_clipboard)(text)
        with self._lock:
            if self._state.result is result:
                self._state = self._state.model_copy(update={"copied": True})
        return True

    def download(self, output_dir: Optional[Path] = None) -> Optional[Path]:
        with self._lock:
            result = self._state.result
        filename = self.handler.download_filename
        if result is None or not filename:
            return None
        target_dir = output_dir or Path(self.config.output_dir)
        path = save_download(result, filename, target_dir)
        LOGGER.info("%s: saved %s", self.handler.key, path)
        return path

    def _execute(self, values: Dict[str, Any]) -> None:
        try:
            request = self.handler.build_request(values)
            LOGGER.info(
                "%s: sending request model=%s modality=%s",
                self.handler.key,
                request.model,
                request.response_modality,
            )
            outcome = self.service.generate(request)
            if isinstance(outcome, GenerationOperation):
                result = self._await_operation(outcome)
            else:
                result = outcome
            if result is None or self._cancel.is_set():
                self._mark_cancelled()
                return
            result = self.handler.parse_result(result)
        except OperationNotFoundError:
            LOGGER.exception("%s: operation no longer found", self.handler.key)
            self.on_failure(CREDENTIAL_INVALID_MESSAGE, credential_invalid=True)
        except TimeoutError as exc:
            LOGGER.error("%s: %s", self.handler.key, exc)
            self.on_failure(POLL_TIMEOUT_MESSAGE)
        except ResultMissingError as exc:
            LOGGER.error("%s: %s", self.handler.key, exc)
            self.on_failure(str(exc))
        except (GenerationServiceError, ValueError) as exc:
            LOGGER.exception("%s: generation failed: %s", self.handler.key, exc)
            self.on_failure(self.handler.error_message)
        except Exception:  # noqa: BLE001
            LOGGER.exception("%s: unexpected failure", self.handler.key)
            self.on_failure(self.handler.error_message)
        else:
            self.on_success(result)

    def _await_operation(self, operation: GenerationOperation) -> Optional[GenerationResult]:
        with self._lock:
            self._state = self._next(status=LifecycleStatus.POLLING)
        interval = self.config.poll_interval_seconds
        max_attempts = self.config.poll_max_attempts
        attempts = 0
        while not operation.done:
            if max_attempts and attempts >= max_attempts:
                raise TimeoutError(
                    f"operation {operation.name} not done after {attempts} polls"
                )
            if self._cancel.wait(interval):
                LOGGER.info("%s: polling cancelled", self.handler.key)
                return None
            operation = self.service.get_operation(operation)
            attempts += 1
            LOGGER.info("%s: poll %d done=%s", self.handler.key, attempts, operation.done)

        if operation.error:
            raise GenerationServiceError(f"operation {operation.name} failed: {operation.error}")
        if not operation.result_uri:
            raise ResultMissingError(NO_VIDEO_RESULT_MESSAGE)
        data = self.service.fetch_asset(operation.result_uri)
        if not data:
            raise ResultMissingError(NO_VIDEO_RESULT_MESSAGE)
        return GenerationResult(kind=MODALITY_VIDEO, data=data, mime_type="video/mp4")

    def _mark_cancelled(self) -> None:
        with self._lock:
            self._state = self._next(status=LifecycleStatus.IDLE)

    def _credential_ok(self) -> bool:
        return self.config.has_credential and not self._state.credential_invalid

    def _merge_fields(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        fields = dict(self._state.fields)
        for name, value in updates.items():
            self.handler.field(name)
            fields[name] = value
            fields = self.handler.on_field_changed(fields, name)
        return fields

    def _next(self, **changes: Any) -> ToolInvocationState:
        # every transition except success/failure clears the previous outcome
        data: Dict[str, Any] = {
            "fields": self._state.fields,
            "status": self._state.status,
            "error_message": None,
            "result": None,
            "copied": False,
            "credential_invalid": self._state.credential_invalid,
        }
        data.update(changes)
        return ToolInvocationState(**data)

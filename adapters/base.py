from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

import requests

from core.models import GenerationOperation, GenerationRequest, GenerationResult

ENTITY_NOT_FOUND_MARK = "Requested entity was not found"


class GenerationServiceError(RuntimeError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class OperationNotFoundError(GenerationServiceError):
    """The service no longer resolves an operation; usually a revoked or expired key."""


GenerationOutcome = Union[GenerationResult, GenerationOperation]


class ProviderAdapter(ABC):
    provider: str

    def __init__(
        self,
        api_key: str,
        base_url: str,
        timeout_seconds: int = 120,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @abstractmethod
    def build_headers(self) -> Dict[str, str]:
        raise NotImplementedError

    @abstractmethod
    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def generate(self, request: GenerationRequest) -> GenerationOutcome:
        raise NotImplementedError

    @abstractmethod
    def get_operation(self, operation: GenerationOperation) -> GenerationOperation:
        raise NotImplementedError

    @abstractmethod
    def fetch_asset(self, uri: str) -> bytes:
        raise NotImplementedError

    def _post_json(self, url: str, payload: Dict[str, Any]) -> Any:
        resp = requests.post(
            url,
            headers=self.build_headers(),
            json=payload,
            timeout=self.timeout_seconds,
        )
        return self._checked(resp, "API error")

    def _get_json(self, url: str) -> Any:
        resp = requests.get(url, headers=self.build_headers(), timeout=self.timeout_seconds)
        return self._checked(resp, "poll error")

    def _checked(self, resp: requests.Response, what: str) -> Any:
        raw = self._json_or_text(resp)
        if not resp.ok:
            body = str(raw)[:500]
            message = f"{self.provider} {what} status={resp.status_code} body={body}"
            if resp.status_code == 404 and ENTITY_NOT_FOUND_MARK in body:
                raise OperationNotFoundError(message, status_code=resp.status_code)
            raise GenerationServiceError(message, status_code=resp.status_code)
        return raw

    @staticmethod
    def _json_or_text(response: requests.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"raw_text": response.text}

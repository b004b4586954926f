import base64
import binascii
import logging
from typing import Any, Dict, List, Optional

import requests

from adapters.base import GenerationOutcome, GenerationServiceError, ProviderAdapter
from core.models import (
    MODALITY_IMAGE,
    MODALITY_TEXT,
    MODALITY_VIDEO,
    GenerationOperation,
    GenerationRequest,
    GenerationResult,
)

LOGGER = logging.getLogger("market_suite")

API_VERSION = "v1beta"
VIDEO_PARAMETER_ALIASES = {"numberOfVideos": "sampleCount"}


class GoogleGenAIAdapter(ProviderAdapter):
    provider = "google"

    def build_headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is missing")
        return {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }

    def generate(self, request: GenerationRequest) -> GenerationOutcome:
        if request.response_modality == MODALITY_VIDEO:
            url = self._model_url(request.model, "predictLongRunning")
            raw = self._post_json(url, self.build_video_payload(request))
            operation = self._parse_operation(raw)
            LOGGER.info("video operation started: %s", operation.name)
            return operation

        url = self._model_url(request.model, "generateContent")
        raw = self._post_json(url, self.build_payload(request))
        if request.response_modality == MODALITY_IMAGE:
            return self._parse_image_result(raw)
        return GenerationResult(kind=MODALITY_TEXT, text=self._extract_text(raw))

    def get_operation(self, operation: GenerationOperation) -> GenerationOperation:
        raw = self._get_json(f"{self.base_url}/{API_VERSION}/{operation.name}")
        return self._parse_operation(raw, fallback_name=operation.name)

    def fetch_asset(self, uri: str) -> bytes:
        headers = {"x-goog-api-key": self.api_key} if self.api_key else {}
        resp = requests.get(uri, headers=headers, timeout=self.timeout_seconds)
        if not resp.ok:
            raise GenerationServiceError(
                f"{self.provider} asset fetch error status={resp.status_code} "
                f"reason={resp.reason}",
                status_code=resp.status_code,
            )
        return resp.content

    def build_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [
            {"inline_data": {"mime_type": item.mime_type, "data": item.to_base64()}}
            for item in request.attachments
        ]
        parts.append({"text": request.prompt})
        payload: Dict[str, Any] = {"contents": [{"role": "user", "parts": parts}]}

        if request.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}

        config: Dict[str, Any] = dict(request.generation_config)
        if request.response_modality == MODALITY_IMAGE:
            config["responseModalities"] = ["IMAGE"]
        if request.response_schema is not None:
            config["responseMimeType"] = "application/json"
            config["responseSchema"] = request.response_schema
        if config:
            payload["generationConfig"] = config
        return payload

    def build_video_payload(self, request: GenerationRequest) -> Dict[str, Any]:
        instance: Dict[str, Any] = {"prompt": request.prompt}
        if request.attachments:
            image = request.attachments[0]
            instance["image"] = {
                "bytesBase64Encoded": image.to_base64(),
                "mimeType": image.mime_type,
            }
        parameters = {
            VIDEO_PARAMETER_ALIASES.get(key, key): value
            for key, value in request.generation_config.items()
        }
        payload: Dict[str, Any] = {"instances": [instance]}
        if parameters:
            payload["parameters"] = parameters
        return payload

    def _model_url(self, model: str, method: str) -> str:
        return f"{self.base_url}/{API_VERSION}/models/{model}:{method}"

    def _extract_text(self, raw: Any) -> str:
        texts: List[str] = []
        for part in self._candidate_parts(raw):
            value = part.get("text")
            if isinstance(value, str):
                texts.append(value)
        if not texts:
            raise GenerationServiceError(
                f"{self.provider} response had no text: {self._block_reason(raw)}"
            )
        return "".join(texts)

    def _parse_image_result(self, raw: Any) -> GenerationResult:
        for part in self._candidate_parts(raw):
            inline = part.get("inlineData") or part.get("inline_data")
            if not isinstance(inline, dict):
                continue
            data = inline.get("data")
            if not isinstance(data, str) or not data:
                continue
            mime = inline.get("mimeType") or inline.get("mime_type") or "image/png"
            try:
                payload = base64.b64decode(data, validate=True)
            except (ValueError, binascii.Error) as exc:
                raise GenerationServiceError(
                    f"{self.provider} returned invalid image data"
                ) from exc
            return GenerationResult(kind=MODALITY_IMAGE, data=payload, mime_type=mime)
        raise GenerationServiceError(
            f"{self.provider} response had no image: {self._block_reason(raw)}"
        )

    def _parse_operation(
        self, raw: Any, fallback_name: Optional[str] = None
    ) -> GenerationOperation:
        if not isinstance(raw, dict):
            raise GenerationServiceError(f"{self.provider} unexpected operation payload: {raw}")
        name = raw.get("name") or fallback_name
        if not isinstance(name, str) or not name.strip():
            raise GenerationServiceError(f"{self.provider} operation missing name: {raw}")
        error = raw.get("error")
        error_message = None
        if isinstance(error, dict):
            error_message = str(error.get("message") or error)
        return GenerationOperation(
            name=name.strip(),
            done=bool(raw.get("done", False)),
            result_uri=self._extract_video_uri(raw.get("response")),
            error=error_message,
        )

    def _extract_video_uri(self, node: Any) -> Optional[str]:
        if isinstance(node, dict):
            video = node.get("video")
            if isinstance(video, dict):
                uri = video.get("uri")
                if isinstance(uri, str) and uri:
                    return uri
            for value in node.values():
                found = self._extract_video_uri(value)
                if found:
                    return found
            return None
        if isinstance(node, list):
            for item in node:
                found = self._extract_video_uri(item)
                if found:
                    return found
        return None

    @staticmethod
    def _candidate_parts(raw: Any) -> List[Dict[str, Any]]:
        if not isinstance(raw, dict):
            return []
        candidates = raw.get("candidates")
        if not isinstance(candidates, list) or not candidates:
            return []
        content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
        if not isinstance(content, dict):
            return []
        parts = content.get("parts")
        if not isinstance(parts, list):
            return []
        return [part for part in parts if isinstance(part, dict)]

    @staticmethod
    def _block_reason(raw: Any) -> str:
        if isinstance(raw, dict):
            feedback = raw.get("promptFeedback")
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                return f"blocked ({feedback['blockReason']})"
        return str(raw)[:200]

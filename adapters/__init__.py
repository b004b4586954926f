from adapters.base import GenerationServiceError as GenerationServiceError
from adapters.base import OperationNotFoundError as OperationNotFoundError
from adapters.base import ProviderAdapter as ProviderAdapter
from adapters.google import GoogleGenAIAdapter as GoogleGenAIAdapter

__all__ = [
    "GenerationServiceError",
    "GoogleGenAIAdapter",
    "OperationNotFoundError",
    "ProviderAdapter",
]

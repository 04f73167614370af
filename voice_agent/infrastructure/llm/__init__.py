from .model_client import ChatModelClient, ModelClient, ModelResponse

__all__ = ["ChatModelClient", "ModelClient", "ModelResponse"]

from src.api.responses import success_response

__all__ = [
    "success_response",
]

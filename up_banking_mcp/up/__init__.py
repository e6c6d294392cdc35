from .client import BASE_URL, UpApiError, UpClient, extract_cursor

__all__ = ["BASE_URL", "UpApiError", "UpClient", "extract_cursor"]

from .client import ApiResponse, RecordApiClient, TokenHolder

__all__ = ["ApiResponse", "RecordApiClient", "TokenHolder"]

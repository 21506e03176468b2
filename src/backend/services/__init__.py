from .media_api import AnalysisRequestError, AnalysisService, MediaApiClient, RemovalService

__all__ = [
    "AnalysisRequestError",
    "AnalysisService",
    "MediaApiClient",
    "RemovalService",
]

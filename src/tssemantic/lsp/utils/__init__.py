"""LSP utility modules for tssemantic."""

from .api_version import API, detect_typescript_version
from .document_event_coordinator import DocumentEventCoordinator
from .models import CancellationToken, ClassificationRequest, ServerResponse
from .text_document import DocumentTextModel
from .tsserver_client import TsServerClient, TsServerError

__all__ = [
    "API",
    "detect_typescript_version",
    "DocumentEventCoordinator",
    "CancellationToken",
    "ClassificationRequest",
    "ServerResponse",
    "DocumentTextModel",
    "TsServerClient",
    "TsServerError",
]

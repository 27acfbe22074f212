"""
LSP server implementation for tssemantic.

This package provides semantic highlighting for TypeScript and JavaScript
documents. Classification is delegated to a tsserver process, whose encoded
classification spans are decoded into LSP semantic tokens.

Key Components:
- TSSemanticLSPServer: LSP server with version-gated feature registration
- Feature modules: semantic tokens (legend, request planning, span decoding,
  line splitting, document synchronisation)
- Utility modules: tsserver client, document text model, event coordination

Usage Example:
    from tssemantic.lsp import TSSemanticLSPServer
    from tssemantic.config.user_config import load_user_config

    server = TSSemanticLSPServer(user_config=load_user_config())

    # Start server (stdio mode for IDE integration)
    server.start()

    # Or start in TCP mode for testing
    server.start(use_tcp=True, host="localhost")
"""

from .server import TSSemanticLSPServer, ServerInitializationState

from .features import register_semantic_tokens

from .utils import (
    API,
    DocumentEventCoordinator,
    DocumentTextModel,
    TsServerClient,
    TsServerError,
)

__all__ = [
    # Main server
    "TSSemanticLSPServer",
    "ServerInitializationState",

    # Features
    "register_semantic_tokens",

    # Utilities
    "API",
    "DocumentEventCoordinator",
    "DocumentTextModel",
    "TsServerClient",
    "TsServerError",
]

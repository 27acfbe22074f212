import logging
from typing import Optional

from pygls.server import LanguageServer
from pygls.protocol import LanguageServerProtocol
from lsprotocol.types import (
    InitializedParams,
    ServerCapabilities,
    TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL,
)

from tssemantic import __version__
from tssemantic.config.types import UserConfig
from .features.semantic_tokens import register_semantic_tokens
from .utils.api_version import API
from .utils.document_event_coordinator import DocumentEventCoordinator
from .utils.tsserver_client import TsServerClient

logger = logging.getLogger(__name__)


class ServerInitializationState:
    """Tracks the initialization state of the LSP server components."""

    def __init__(self):
        self.tsserver_client_ready = False
        self.features_registered = False
        self.registered_features = []
        self.initialization_errors = []

    def add_error(self, component: str, error: Exception):
        """Add an initialization error for tracking."""
        self.initialization_errors.append((component, str(error)))
        logger.error(f"Initialization error in {component}: {error}")

    def is_ready_for_features(self) -> bool:
        """Check if all prerequisites for feature registration are met."""
        return self.tsserver_client_ready

    def get_error_summary(self) -> str:
        """Get a summary of initialization errors."""
        if not self.initialization_errors:
            return "No initialization errors"

        return f"Initialization errors: {'; '.join([f'{comp}: {err}' for comp, err in self.initialization_errors])}"


class PatchedLanguageServerProtocol(LanguageServerProtocol):
    """A patched version of the language server protocol to handle semantic tokens capabilities."""

    def __init__(self, *args, **kwargs):
        self._server_capabilities = ServerCapabilities()
        super().__init__(*args, **kwargs)

    @property
    def server_capabilities(self):
        return self._server_capabilities

    @server_capabilities.setter
    def server_capabilities(self, value: ServerCapabilities):
        # Check if semantic tokens full feature is registered and set the capability
        if TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL in self.fm.features:
            opts = self.fm.feature_options.get(TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, None)
            if opts:
                value.semantic_tokens_provider = opts
        self._server_capabilities = value


class TSSemanticLSPServer:
    """
    LSP Server providing semantic highlighting for TypeScript and JavaScript.

    Classification is delegated to a tsserver process. The semantic tokens
    feature is only registered when the TypeScript version supports encoded
    semantic classifications; the server runs without it otherwise.
    """

    def __init__(self, user_config: UserConfig, port: Optional[int] = None,
                 client: Optional[TsServerClient] = None):
        """
        Initialize the tssemantic LSP Server.

        Args:
            user_config: User configuration loaded from ~/.tssemantic/config.yml
            port: Port number for LSP server (if applicable)
            client: tsserver client to use instead of one built from user_config
        """
        # Configuration
        self.user_config = user_config
        self.port = port or 3000

        # Core components
        self.tsserver_client: Optional[TsServerClient] = client
        self.ls = LanguageServer('tssemantic-lsp', f'v{__version__}', protocol_cls=PatchedLanguageServerProtocol)
        self.document_coordinator = DocumentEventCoordinator()

        # Initialization state tracking
        self.init_state = ServerInitializationState()

        # Setup server components
        self._setup_server()

        logger.info(f"tssemantic LSP Server initialized on port {self.port}")
        logger.info(self.init_state.get_error_summary())

    def _setup_server(self):
        """Register protocol handlers, create the tsserver client, then register features."""
        self._register_handlers()

        self._initialize_tsserver_client()

        if self.init_state.is_ready_for_features():
            self._initialize_features()
        else:
            logger.warning("tsserver client not ready - no features will be registered")

    def _initialize_tsserver_client(self):
        """Create the tsserver client; the process itself starts on first use."""
        try:
            if self.tsserver_client is None:
                self.tsserver_client = TsServerClient.from_config(self.user_config["tsserver"])
            self.init_state.tsserver_client_ready = True
            logger.info(f"tsserver client configured: {' '.join(self.tsserver_client.command)}")
        except Exception as e:
            self.init_state.add_error("tsserver Client", e)

    def _initialize_features(self):
        """Initialize and register LSP features."""
        try:
            self._register_features()
            self.init_state.features_registered = True
            logger.info("LSP features initialized successfully")
        except Exception as e:
            self.init_state.add_error("Feature Registration", e)

    def _register_handlers(self):
        """Register LSP protocol handlers."""

        @self.ls.feature("initialized")
        def initialized(params: InitializedParams):
            """Handle the initialized notification."""
            logger.info("LSP: Server initialized successfully")

        @self.ls.feature("shutdown")
        async def shutdown(params=None):
            """Handle LSP shutdown request."""
            logger.info("LSP: Handling shutdown request")
            await self._cleanup_resources()
            return None

        @self.ls.feature("exit")
        def exit_handler(params=None):
            """Handle exit notification."""
            logger.info("LSP: Server exiting")

    def supports_semantic_tokens(self) -> bool:
        """Whether the configured TypeScript version can serve semantic tokens."""
        settings = self.user_config["semantic_tokens"]
        if not settings.get("enabled", True):
            logger.info("LSP: Semantic tokens disabled in configuration")
            return False

        api_version = self.tsserver_client.api_version
        if api_version is None:
            logger.warning("LSP: Unknown TypeScript version - set tsserver.version to enable semantic tokens")
            return False

        min_version = API.from_version_string(settings["min_version"])
        if not api_version.gte(min_version):
            logger.warning(
                f"LSP: TypeScript {api_version.display_name} is older than {min_version.display_name} "
                f"- semantic tokens not available"
            )
            return False
        return True

    def _register_features(self):
        """
        Register LSP features with the server.

        Raises:
            RuntimeError: If the tsserver client has not been created
        """
        if not self.tsserver_client:
            raise RuntimeError("Cannot register features: tsserver client not initialized")

        logger.info("LSP: Registering features...")

        if self.supports_semantic_tokens():
            try:
                _, semantic_tokens_handler = register_semantic_tokens(self.ls, self.tsserver_client)
                self.document_coordinator.register_handler(semantic_tokens_handler)
                self.init_state.registered_features.append("semantic_tokens")
                logger.info("LSP: Semantic tokens feature registered")
            except Exception as e:
                self.init_state.add_error("Semantic Tokens Feature", e)

        if self.document_coordinator.get_handler_count() > 0:
            self.document_coordinator.register_with_server(self.ls)

        logger.info(f"LSP: Feature registration completed - {len(self.init_state.registered_features)} features registered")

    async def _cleanup_resources(self):
        """Clear document handlers, then stop tsserver."""
        logger.info("Cleaning up LSP server resources...")

        try:
            self.document_coordinator.clear_handlers()
        except Exception as e:
            logger.error(f"Error clearing document handlers: {e}")

        try:
            if self.tsserver_client:
                await self.tsserver_client.stop()
        except Exception as e:
            logger.error(f"Error stopping tsserver: {e}")

        logger.info("LSP server resource cleanup completed")

    def start(self, host: str = "localhost", use_tcp: bool = False):
        """Start the LSP server

        Args:
            host: Host to bind to when using TCP (default: localhost)
            use_tcp: Whether to use TCP instead of stdio (default: False)
        """
        logger.info("Starting tssemantic LSP Server...")

        try:
            if use_tcp:
                logger.info(f"Starting LSP TCP server on {host}:{self.port}...")
                self.ls.start_tcp(host, self.port)
                logger.info("LSP TCP server finished")
            else:
                logger.info("Starting LSP IO server...")
                self.ls.start_io()
                logger.info("LSP IO server finished")
        except KeyboardInterrupt:
            logger.info("Received shutdown signal")
        except BrokenPipeError:
            logger.info("Broken pipe - client disconnected")
        except EOFError:
            logger.info("EOF - no more input from client")
        except Exception as e:
            logger.error(f"Error in LSP server: {e}")
            import traceback
            logger.error(traceback.format_exc())
        finally:
            logger.info("tssemantic LSP Server stopped")

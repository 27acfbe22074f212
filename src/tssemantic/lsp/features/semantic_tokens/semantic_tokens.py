"""Main semantic tokens functionality for the LSP server."""

import asyncio
import logging
from typing import List, Optional, Sequence

from lsprotocol import types
from pygls.server import LanguageServer
from pygls.workspace import TextDocument

from .document_handler import DocumentEventHandler
from .position_calculator import PositionCalculator
from .request_planner import RequestPlanner
from .semantic_tokens_classifier import SpanDecoder, Token
from .semantic_tokens_config import SemanticTokensConfig, build_legend
from .staleness_guard import StalenessGuard
from tssemantic.lsp.utils.models import CancellationToken
from tssemantic.lsp.utils.text_document import DocumentTextModel
from tssemantic.lsp.utils.tsserver_client import TsServerClient


logger = logging.getLogger(__name__)


class SemanticTokensService:
    """Main service class for semantic tokens functionality."""

    def __init__(self, client: TsServerClient, config: Optional[SemanticTokensConfig] = None):
        """Initialize the semantic tokens service."""
        self._client = client
        self._config = config or SemanticTokensConfig()
        self._planner = RequestPlanner()
        self._decoder = SpanDecoder(self._config)
        self._position_calculator = PositionCalculator()
        self._server: Optional[LanguageServer] = None

    def get_legend(self) -> types.SemanticTokensLegend:
        """Token type and modifier names, index-aligned with the decoder."""
        return build_legend()

    async def provide_semantic_tokens(
        self,
        document: TextDocument,
        ranges: Optional[Sequence[types.Range]],
        cancellation: CancellationToken,
    ) -> Optional[List[Token]]:
        """
        Classify a document, or ranges of it, into semantic tokens.

        One classification request is sent per range, in ascending start
        order. Nothing is returned unless every request succeeds, the token
        is never cancelled and the document is unchanged once all responses
        are in; there are no partial results.

        Args:
            document: The live workspace document
            ranges: Ranges to classify, or None for the whole document
            cancellation: Cancellation signal for this invocation

        Returns:
            Tokens in (line, start_char) order, or None
        """
        file = self._client.to_opened_file_path(document.uri)
        if not file:
            logger.debug(f"{document.uri} is not open in tsserver")
            return None

        guard = StalenessGuard(lambda: document.version)
        requests = self._planner.plan(file, DocumentTextModel.from_document(document), ranges)

        all_spans: List[List[int]] = []
        for request in requests:
            if cancellation.is_cancelled:
                return None

            response = await self._client.execute(
                self._config.CLASSIFICATIONS_COMMAND, request.to_arguments(), cancellation
            )
            if cancellation.is_cancelled or response.is_cancelled:
                logger.debug(f"Semantic tokens request for {document.uri} cancelled")
                return None

            spans = response.get_spans()
            if spans is None:
                logger.debug(f"No classifications for {file} [{request.start}, +{request.length}): {response.message}")
                return None
            all_spans.append(spans)

        if guard.is_stale():
            # The client will ask again once the document settles
            logger.debug(f"{document.uri} changed from version {guard.snapshot_version} during classification")
            return None

        # Same version as when the requests were planned, so positions line up with the spans
        model = DocumentTextModel.from_document(document)
        tokens: List[Token] = []
        for spans in all_spans:
            tokens.extend(self._position_calculator.split_spans(self._decoder.decode(spans), model))
        tokens = self._position_calculator.order_tokens(tokens)

        logger.debug(f"Decoded {len(tokens)} semantic tokens for {document.uri}")
        return tokens

    async def get_semantic_tokens_full(self, params: types.SemanticTokensParams) -> Optional[types.SemanticTokens]:
        """
        Return the semantic tokens for the entire document.

        Args:
            params: Semantic tokens parameters

        Returns:
            SemanticTokens object with token data, or None if not available
        """
        logger.debug(f"Semantic tokens request received for {params.text_document.uri}")
        return await self._get_semantic_tokens(params.text_document.uri, None)

    async def get_semantic_tokens_range(self, params: types.SemanticTokensRangeParams) -> Optional[types.SemanticTokens]:
        """
        Return the semantic tokens for a specific range in the document.

        Args:
            params: Semantic tokens range parameters

        Returns:
            SemanticTokens object with token data for the range, or None if not available
        """
        logger.debug(f"Semantic tokens range request received for {params.text_document.uri}")
        return await self._get_semantic_tokens(params.text_document.uri, [params.range])

    async def _get_semantic_tokens(
        self, document_uri: str, ranges: Optional[List[types.Range]]
    ) -> Optional[types.SemanticTokens]:
        if self._server is None:
            logger.error("Server not set - register_semantic_tokens must be called first")
            return None

        cancellation = CancellationToken()
        try:
            document = self._server.workspace.get_text_document(document_uri)
            tokens = await self.provide_semantic_tokens(document, ranges, cancellation)
            if tokens is None:
                return None

            data = self._position_calculator.calculate_relative_positions(tokens)
            logger.debug(f"Returning semantic tokens with {len(data)} data points")
            return types.SemanticTokens(data=data)

        except asyncio.CancelledError:
            cancellation.cancel()
            raise
        except Exception as e:
            logger.error(f"Error generating semantic tokens for {document_uri}: {e}")
            return None

    def _set_server(self, server: LanguageServer) -> None:
        """Set the server instance (called by register function)."""
        self._server = server


def register_semantic_tokens(
    server: LanguageServer,
    client: TsServerClient,
) -> tuple[SemanticTokensService, DocumentEventHandler]:
    """
    Register semantic tokens functionality with the LSP server.

    Args:
        server: The language server instance
        client: tsserver client used for classification

    Returns:
        Tuple of (semantic tokens service, document event handler)
    """
    try:
        service = SemanticTokensService(client)
        service._set_server(server)

        document_handler = DocumentEventHandler(server, client)

        semantic_tokens_options = types.SemanticTokensOptions(
            legend=service.get_legend(),
            full=True,
            range=True,
        )

        @server.feature(types.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, semantic_tokens_options)
        async def semantic_tokens_full(ls: LanguageServer, params: types.SemanticTokensParams):
            """Return the semantic tokens for the entire document."""
            return await service.get_semantic_tokens_full(params)

        @server.feature(types.TEXT_DOCUMENT_SEMANTIC_TOKENS_RANGE)
        async def semantic_tokens_range(ls: LanguageServer, params: types.SemanticTokensRangeParams):
            """Return the semantic tokens for a range in the document."""
            return await service.get_semantic_tokens_range(params)

        logger.info("Semantic tokens functionality registered successfully")
        return service, document_handler

    except Exception as e:
        logger.error(f"Error registering semantic tokens functionality: {e}")
        raise

"""Document event handlers that keep tsserver in sync with the editor."""

import logging

from lsprotocol import types
from pygls.server import LanguageServer

from tssemantic.lsp.utils.tsserver_client import SCRIPT_KINDS, TsServerClient


logger = logging.getLogger(__name__)


class DocumentEventHandler:
    """Forwards document open, change and close events to tsserver."""

    def __init__(self, server: LanguageServer, client: TsServerClient):
        """Initialize with server and tsserver client instances."""
        self._server = server
        self._client = client

    async def handle_document_open(self, params: types.DidOpenTextDocumentParams) -> None:
        """
        Open the document in tsserver with the editor's content.

        Args:
            params: Document open parameters
        """
        text_document = params.text_document
        if text_document.language_id not in SCRIPT_KINDS:
            logger.debug(f"Not opening {text_document.uri} in tsserver: language {text_document.language_id}")
            return

        try:
            await self._client.open_file(text_document.uri, text_document.text, text_document.language_id)
        except Exception as e:
            logger.error(f"Error handling document open for {text_document.uri}: {e}")

    async def handle_document_change(self, params: types.DidChangeTextDocumentParams) -> None:
        """
        Forward content changes to tsserver.

        Changes are applied in order. A whole-document change reopens the
        file with the text carried by that change, so ranged changes after it
        apply on top of it.

        Args:
            params: Document change parameters
        """
        document_uri = params.text_document.uri
        if self._client.to_opened_file_path(document_uri) is None:
            return

        try:
            for change in params.content_changes:
                if isinstance(change, types.TextDocumentContentChangeEvent_Type1):
                    await self._client.change_file(
                        document_uri, change.range.start, change.range.end, change.text
                    )
                else:
                    await self._reopen(document_uri, change.text)
        except Exception as e:
            logger.error(f"Error handling document change for {document_uri}: {e}")

    async def handle_document_close(self, params: types.DidCloseTextDocumentParams) -> None:
        """Close the document in tsserver."""
        try:
            await self._client.close_file(params.text_document.uri)
        except Exception as e:
            logger.error(f"Error handling document close for {params.text_document.uri}: {e}")

    async def _reopen(self, document_uri: str, text: str) -> None:
        language_id = self._server.workspace.get_text_document(document_uri).language_id
        await self._client.close_file(document_uri)
        await self._client.open_file(document_uri, text, language_id)

"""Unit tests for document synchronisation with tsserver."""

import logging

import pytest
from lsprotocol import types
from unittest.mock import AsyncMock, Mock, call
from pygls.workspace import TextDocument

from tssemantic.lsp.features.semantic_tokens.document_handler import DocumentEventHandler
from tssemantic.lsp.utils.document_event_coordinator import DocumentEventCoordinator
from tssemantic.lsp.utils.tsserver_client import TsServerClient, TsServerError


URI = "file:///project/sample.ts"


@pytest.fixture
def mock_tsserver_client():
    client = Mock(spec=TsServerClient)
    client.to_opened_file_path.return_value = "/project/sample.ts"
    client.open_file = AsyncMock()
    client.change_file = AsyncMock()
    client.close_file = AsyncMock()
    return client


@pytest.fixture
def mock_server():
    server = Mock()
    server.workspace.get_text_document.return_value = TextDocument(
        URI, "class Shape {}\n", version=3, language_id="typescript"
    )
    return server


@pytest.fixture
def handler(mock_server, mock_tsserver_client):
    return DocumentEventHandler(mock_server, mock_tsserver_client)


def open_params(language_id="typescript", uri=URI):
    return types.DidOpenTextDocumentParams(
        text_document=types.TextDocumentItem(uri=uri, language_id=language_id, version=1, text="class A {}\n")
    )


def change_params(*changes):
    return types.DidChangeTextDocumentParams(
        text_document=types.VersionedTextDocumentIdentifier(uri=URI, version=2),
        content_changes=list(changes),
    )


def ranged_change(start, end, text):
    return types.TextDocumentContentChangeEvent_Type1(
        range=types.Range(start=types.Position(line=0, character=start), end=types.Position(line=0, character=end)),
        text=text,
    )


class TestDocumentEventHandler:
    """Test cases for DocumentEventHandler class."""

    @pytest.mark.parametrize("language_id", ["typescript", "typescriptreact", "javascript", "javascriptreact"])
    async def test_open_script(self, handler, mock_tsserver_client, language_id):
        await handler.handle_document_open(open_params(language_id))

        mock_tsserver_client.open_file.assert_awaited_once_with(URI, "class A {}\n", language_id)

    async def test_open_other_language_is_ignored(self, handler, mock_tsserver_client):
        await handler.handle_document_open(open_params("json", uri="file:///project/package.json"))

        mock_tsserver_client.open_file.assert_not_awaited()

    async def test_open_error_is_logged(self, handler, mock_tsserver_client, caplog):
        mock_tsserver_client.open_file.side_effect = TsServerError("tsserver is not running")

        with caplog.at_level(logging.ERROR):
            await handler.handle_document_open(open_params())

        assert "Error handling document open" in caplog.text

    async def test_ranged_changes_forwarded_in_order(self, handler, mock_tsserver_client):
        # Arrange
        first = ranged_change(6, 7, "Shape")
        second = ranged_change(0, 0, "export ")

        # Act
        await handler.handle_document_change(change_params(first, second))

        # Assert
        assert mock_tsserver_client.change_file.await_args_list == [
            call(URI, first.range.start, first.range.end, "Shape"),
            call(URI, second.range.start, second.range.end, "export "),
        ]

    async def test_full_change_reopens_with_its_own_text(self, handler, mock_tsserver_client):
        """The reopen uses the change text, not the workspace, which may already hold later edits."""
        # Arrange
        full = types.TextDocumentContentChangeEvent_Type2(text="class Full {}\n")
        after = ranged_change(0, 0, "y")

        # Act
        await handler.handle_document_change(change_params(ranged_change(0, 0, "x"), full, after))

        # Assert
        mock_tsserver_client.close_file.assert_awaited_once_with(URI)
        mock_tsserver_client.open_file.assert_awaited_once_with(URI, "class Full {}\n", "typescript")
        assert mock_tsserver_client.change_file.await_count == 2
        assert mock_tsserver_client.change_file.await_args == call(URI, after.range.start, after.range.end, "y")

    async def test_change_to_unopened_document_is_ignored(self, handler, mock_tsserver_client):
        mock_tsserver_client.to_opened_file_path.return_value = None

        await handler.handle_document_change(change_params(ranged_change(0, 0, "x")))

        mock_tsserver_client.change_file.assert_not_awaited()

    async def test_close(self, handler, mock_tsserver_client):
        params = types.DidCloseTextDocumentParams(text_document=types.TextDocumentIdentifier(uri=URI))

        await handler.handle_document_close(params)

        mock_tsserver_client.close_file.assert_awaited_once_with(URI)


class TestDocumentEventCoordinator:
    """Test cases for DocumentEventCoordinator class."""

    def test_register_handler_once(self):
        coordinator = DocumentEventCoordinator()
        handler = Mock()

        coordinator.register_handler(handler)
        coordinator.register_handler(handler)

        assert coordinator.get_handler_count() == 1

    def test_register_none(self):
        with pytest.raises(ValueError, match="Handler cannot be None"):
            DocumentEventCoordinator().register_handler(None)

    def test_register_with_server_requires_handlers(self):
        with pytest.raises(RuntimeError, match="no handlers registered"):
            DocumentEventCoordinator().register_with_server(Mock())

    def test_register_with_server_once(self):
        # Arrange
        coordinator = DocumentEventCoordinator()
        coordinator.register_handler(Mock())
        server = Mock()

        # Act
        coordinator.register_with_server(server)
        coordinator.register_with_server(server)

        # Assert
        registered = [c.args[0] for c in server.feature.call_args_list]
        assert registered == [
            types.TEXT_DOCUMENT_DID_OPEN,
            types.TEXT_DOCUMENT_DID_CHANGE,
            types.TEXT_DOCUMENT_DID_CLOSE,
        ]

    async def test_distribute_awaits_handlers_in_order(self):
        # Arrange
        calls = []

        class Recorder:
            def __init__(self, name):
                self.name = name

            async def handle_document_open(self, params):
                calls.append(self.name)

        coordinator = DocumentEventCoordinator()
        coordinator.register_handler(Recorder("first"))
        coordinator.register_handler(Recorder("second"))

        # Act
        await coordinator.distribute_event("handle_document_open", open_params())

        # Assert
        assert calls == ["first", "second"]

    async def test_failing_handler_does_not_stop_others(self, caplog):
        # Arrange
        failing = Mock()
        failing.handle_document_close = AsyncMock(side_effect=RuntimeError("boom"))
        healthy = Mock()
        healthy.handle_document_close = Mock()
        coordinator = DocumentEventCoordinator()
        coordinator.register_handler(failing)
        coordinator.register_handler(healthy)

        # Act
        with caplog.at_level(logging.ERROR):
            await coordinator.distribute_event("handle_document_close", "params")

        # Assert
        healthy.handle_document_close.assert_called_once_with("params")
        assert "boom" in caplog.text

    def test_clear_handlers(self):
        coordinator = DocumentEventCoordinator()
        coordinator.register_handler(Mock())

        coordinator.clear_handlers()

        assert coordinator.get_handler_count() == 0

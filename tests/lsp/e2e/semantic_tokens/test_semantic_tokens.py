import tempfile
from pathlib import Path

import pytest
from lsprotocol.types import (
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    Range,
    SemanticTokens,
    SemanticTokensParams,
    SemanticTokensRangeParams,
    TextDocumentContentChangeEvent_Type1,
    TextDocumentIdentifier,
    TextDocumentItem,
    VersionedTextDocumentIdentifier,
)
from pytest_lsp import LanguageClient

SOURCE = "class A {}\nfunction f() {}\n"
DOCUMENT_URI = (Path(tempfile.gettempdir()) / "tssemantic-e2e" / "sample.ts").as_uri()


def open_document(client: LanguageClient, uri: str = DOCUMENT_URI, language_id: str = "typescript"):
    client.text_document_did_open(
        DidOpenTextDocumentParams(
            text_document=TextDocumentItem(uri=uri, language_id=language_id, version=1, text=SOURCE)
        )
    )


async def full_tokens(client: LanguageClient, uri: str = DOCUMENT_URI):
    return await client.text_document_semantic_tokens_full_async(
        params=SemanticTokensParams(text_document=TextDocumentIdentifier(uri=uri))
    )


@pytest.mark.asyncio
async def test_semantic_tokens_full(client: LanguageClient):
    """Test semantic tokens for a whole TypeScript document."""
    # Arrange
    open_document(client)

    # Act
    result = await full_tokens(client)

    # Assert: class A (class, declaration), function f (function, declaration)
    assert isinstance(result, SemanticTokens)
    assert result.data == [0, 6, 1, 0, 1, 1, 9, 1, 10, 1]


@pytest.mark.asyncio
async def test_semantic_tokens_range(client: LanguageClient):
    """Test semantic tokens for the second line only."""
    # Arrange
    open_document(client)

    # Act
    result = await client.text_document_semantic_tokens_range_async(
        params=SemanticTokensRangeParams(
            text_document=TextDocumentIdentifier(uri=DOCUMENT_URI),
            range=Range(start=Position(line=1, character=0), end=Position(line=2, character=0)),
        )
    )

    # Assert
    assert isinstance(result, SemanticTokens)
    assert result.data == [1, 9, 1, 10, 1]


@pytest.mark.asyncio
async def test_semantic_tokens_after_edit(client: LanguageClient):
    """Edits are forwarded to tsserver before the next classification."""
    # Arrange
    open_document(client)
    client.text_document_did_change(
        DidChangeTextDocumentParams(
            text_document=VersionedTextDocumentIdentifier(uri=DOCUMENT_URI, version=2),
            content_changes=[
                TextDocumentContentChangeEvent_Type1(
                    range=Range(start=Position(line=0, character=6), end=Position(line=0, character=7)),
                    text="Shape",
                )
            ],
        )
    )

    # Act
    result = await full_tokens(client)

    # Assert
    assert result.data == [0, 6, 5, 0, 1, 1, 9, 1, 10, 1]


@pytest.mark.asyncio
async def test_semantic_tokens_unopened_document(client: LanguageClient):
    """A document that was never opened has no tokens."""
    result = await full_tokens(client, (Path(tempfile.gettempdir()) / "never-opened.ts").as_uri())

    assert result is None


@pytest.mark.asyncio
async def test_semantic_tokens_other_language(client: LanguageClient):
    """Documents tsserver does not handle are not classified."""
    uri = (Path(tempfile.gettempdir()) / "tssemantic-e2e" / "notes.md").as_uri()
    open_document(client, uri=uri, language_id="markdown")

    result = await full_tokens(client, uri)

    assert result is None

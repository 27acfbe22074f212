import pytest
from unittest.mock import AsyncMock, Mock
from pygls.workspace import TextDocument

from tssemantic.lsp.features.semantic_tokens import SemanticTokensService
from tssemantic.lsp.utils.models import ServerResponse
from tssemantic.lsp.utils.tsserver_client import TsServerClient


SAMPLE_URI = "file:///project/sample.ts"
SAMPLE_FILE = "/project/sample.ts"


@pytest.fixture
def classification_response():
    """Factory for successful encodedSemanticClassifications-full responses."""
    def make(spans):
        return ServerResponse.from_message({
            "type": "response",
            "command": "encodedSemanticClassifications-full",
            "success": True,
            "body": {"spans": spans, "endOfLineState": 0},
        })
    return make


@pytest.fixture
def mock_tsserver_client():
    client = Mock(spec=TsServerClient)
    client.to_opened_file_path.return_value = SAMPLE_FILE
    client.execute = AsyncMock()
    return client


@pytest.fixture
def service(mock_tsserver_client):
    return SemanticTokensService(mock_tsserver_client)


@pytest.fixture
def sample_ts_code():
    return "class A {}\nfunction f() {}\n"


@pytest.fixture
def sample_document(sample_ts_code):
    return TextDocument(SAMPLE_URI, sample_ts_code, version=1, language_id="typescript")

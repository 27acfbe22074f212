import sys
import tempfile
from pathlib import Path

import pytest_lsp
from lsprotocol.types import (
    ClientCapabilities,
    InitializeParams,
)
from pytest_lsp import ClientServerConfig, LanguageClient

FAKE_TSSERVER = Path(__file__).parent.parent.parent.parent / "fixtures" / "fake_tsserver.py"

# The server is started once per test, before tmp_path is available
E2E_CONFIG = Path(tempfile.mkdtemp(prefix="tssemantic-e2e-")) / "config.yml"
E2E_CONFIG.write_text(
    "tssemantic: 1\n"
    "tsserver:\n"
    f"  command: [{sys.executable!r}, {str(FAKE_TSSERVER)!r}]\n"
    "  version: '5.4.5'\n"
)


@pytest_lsp.fixture(
    config=ClientServerConfig(
        server_command=[sys.executable, "-m", "tssemantic", "lsp", "--config", str(E2E_CONFIG)]
    ),
)
async def client(lsp_client: LanguageClient):
    # Setup
    params = InitializeParams(capabilities=ClientCapabilities())
    await lsp_client.initialize_session(params)

    yield

    # Teardown
    await lsp_client.shutdown_session()

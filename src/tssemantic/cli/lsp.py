import click
import signal
from pathlib import Path
from typing import Optional
from tssemantic.lsp.server import TSSemanticLSPServer
from tssemantic.cli.utils import output_error, configure_logging
from tssemantic.config.user_config import load_user_config


@click.command(name="lsp")
@click.option("--config", "config_path", type=click.Path(dir_okay=False, path_type=Path),
              help="Path to the user config file (defaults to ~/.tssemantic/config.yml)")
@click.option("--port", type=int, help="Port number for LSP server (defaults to 3000)")
@click.option("--host", default="localhost", help="Host to bind to when using TCP mode (defaults to localhost)")
@click.option("--tcp", is_flag=True, help="Use TCP instead of stdio for LSP communication")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def lsp(config_path: Optional[Path], port: Optional[int], host: str, tcp: bool, debug: bool):
    """Start the tssemantic LSP server.

    This command starts an LSP (Language Server Protocol) server that provides
    semantic highlighting for TypeScript and JavaScript files. Classification
    is delegated to tsserver from your TypeScript installation.

    By default, the server uses stdio for communication (suitable for IDE integration).
    Use --tcp flag for testing or when stdio communication is not suitable.

    Examples:
        tssemantic lsp                     # Start LSP server using stdio
        tssemantic lsp --tcp               # Start LSP server using TCP on localhost:3000
        tssemantic lsp --tcp --port 4000   # Start LSP server using TCP on localhost:4000
        tssemantic lsp --config ./ts.yml   # Use a specific config file
        tssemantic lsp --debug             # Start with detailed debug logging
    """
    configure_logging(debug)

    try:
        user_config = load_user_config(config_path)

        final_port = port or 3000

        # Set up signal handler for graceful shutdown
        def signal_handler(signum, frame):
            raise KeyboardInterrupt()

        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        server = TSSemanticLSPServer(user_config=user_config, port=final_port)

        if tcp:
            click.echo(f"Starting tssemantic LSP server on {host}:{final_port}", err=True)
            server.start(host=host, use_tcp=True)
        else:
            server.start(host=host, use_tcp=False)

    except KeyboardInterrupt:
        click.echo("\nLSP server stopped", err=True)
    except Exception as e:
        output_error(e, debug=debug)

"""
tsserver client for the tssemantic LSP server.

This module runs a TypeScript server process and exchanges requests with it
over stdio. Requests are written as one JSON object per line; tsserver
answers with ``Content-Length`` framed JSON messages, which are matched back
to their requests by sequence number.
"""

import asyncio
import itertools
import json
import logging
from typing import Any, Dict, List, Optional

from lsprotocol import types
from pygls.uris import to_fs_path

from tssemantic.config.types import TsServerConfig
from .api_version import API, detect_typescript_version
from .models import CancellationToken, ServerResponse

logger = logging.getLogger(__name__)


# LSP language ids mapped to tsserver script kinds
SCRIPT_KINDS: Dict[str, str] = {
    "typescript": "TS",
    "typescriptreact": "TSX",
    "javascript": "JS",
    "javascriptreact": "JSX",
}

_CONTENT_LENGTH = b"content-length:"


class TsServerError(Exception):
    """Raised when tsserver cannot be started or stops serving requests."""
    pass


def build_tsserver_command(config: TsServerConfig) -> List[str]:
    """
    Build the command line used to spawn tsserver.

    An explicit ``command`` wins; otherwise ``path`` is run directly, or
    through ``node`` when it points at a ``.js`` file.

    Raises:
        TsServerError: If neither a command nor a path is configured
    """
    command = config.get("command")
    if command:
        base = list(command)
    else:
        path = config.get("path")
        if not path:
            raise TsServerError("No tsserver found: set tsserver.path or install typescript on PATH")
        if path.endswith(".js"):
            base = [config.get("node") or "node", path]
        else:
            base = [path]
    return base + list(config.get("args") or [])


def resolve_api_version(config: TsServerConfig) -> Optional[API]:
    """Version from the config, else detected from the configured tsserver path."""
    version = config.get("version")
    if version:
        return API.from_version_string(version)
    path = config.get("path")
    if path:
        return detect_typescript_version(path)
    return None


class TsServerClient:
    """
    Client for a tsserver process.

    The process is spawned lazily by the first request or document
    notification. Documents must be opened in tsserver before they can be
    classified; the client remembers which LSP documents it has opened.
    """

    def __init__(self, command: List[str], api_version: Optional[API] = None):
        """
        Initialize the client without starting tsserver.

        Args:
            command: Command line that starts tsserver
            api_version: Version of the TypeScript install, if known

        Raises:
            ValueError: If command is empty
        """
        if not command:
            raise ValueError("tsserver command is required")

        self._command = list(command)
        self.api_version = api_version
        self._process: Optional[asyncio.subprocess.Process] = None
        self._start_task: Optional[asyncio.Future] = None
        self._reader_task: Optional[asyncio.Task] = None
        self._seq = itertools.count(1)
        self._pending: Dict[int, asyncio.Future] = {}
        self._opened_files: Dict[str, str] = {}

    @classmethod
    def from_config(cls, config: TsServerConfig) -> "TsServerClient":
        """Create a client from the ``tsserver`` section of the user config."""
        return cls(build_tsserver_command(config), api_version=resolve_api_version(config))

    @property
    def command(self) -> List[str]:
        return list(self._command)

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.returncode is None

    def to_opened_file_path(self, uri: str) -> Optional[str]:
        """
        Get the tsserver file name of an opened document.

        Returns:
            The file name, or None if the document is not open in tsserver
        """
        return self._opened_files.get(uri)

    async def start(self) -> None:
        """
        Start tsserver if it is not already running.

        Concurrent callers share a single start attempt.

        Raises:
            TsServerError: If the process cannot be spawned
        """
        if self._start_task is None:
            self._start_task = asyncio.ensure_future(self._spawn())

        start_task = self._start_task
        try:
            await asyncio.shield(start_task)
        except OSError as e:
            if self._start_task is start_task:
                self._start_task = None
            raise TsServerError(f"Failed to start tsserver with {self._command}: {e}") from e

    async def _spawn(self) -> None:
        logger.info(f"Starting tsserver: {' '.join(self._command)}")
        self._process = await asyncio.create_subprocess_exec(
            *self._command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.DEVNULL,
        )
        self._reader_task = asyncio.ensure_future(self._read_loop(self._process))
        logger.info(f"tsserver started with pid {self._process.pid}")

    async def execute(
        self,
        command: str,
        arguments: Any,
        cancellation: Optional[CancellationToken] = None,
    ) -> ServerResponse:
        """
        Send a request and wait for its response.

        Args:
            command: tsserver command name
            arguments: Command arguments
            cancellation: Token that abandons the wait when cancelled

        Returns:
            The response, or a cancelled response if the token fired first

        Raises:
            TsServerError: If tsserver is not available or exits before answering
        """
        if cancellation is not None and cancellation.is_cancelled:
            return ServerResponse.cancelled(command)

        await self.start()

        seq = next(self._seq)
        future = asyncio.get_running_loop().create_future()
        self._pending[seq] = future

        try:
            await self._send({"seq": seq, "type": "request", "command": command, "arguments": arguments})

            if cancellation is None:
                message = await future
            else:
                cancel_waiter = asyncio.ensure_future(cancellation.wait())
                try:
                    done, _ = await asyncio.wait(
                        {future, cancel_waiter}, return_when=asyncio.FIRST_COMPLETED
                    )
                finally:
                    cancel_waiter.cancel()

                if future not in done:
                    logger.debug(f"Request {seq} ({command}) cancelled before tsserver answered")
                    return ServerResponse.cancelled(command)
                message = future.result()
        finally:
            self._pending.pop(seq, None)
            if not future.done():
                future.cancel()

        return ServerResponse.from_message(message)

    async def open_file(self, uri: str, text: str, language_id: Optional[str] = None) -> None:
        """
        Open a document in tsserver with the editor's content.

        Args:
            uri: Document URI
            text: Full document text
            language_id: LSP language id, used to pick the script kind
        """
        file = self._to_file_path(uri)
        arguments: Dict[str, Any] = {"file": file, "fileContent": text}
        script_kind = SCRIPT_KINDS.get(language_id or "")
        if script_kind:
            arguments["scriptKindName"] = script_kind

        # Recorded before sending so changes queued behind the open are not dropped
        self._opened_files[uri] = file
        await self._notify("open", arguments)
        logger.debug(f"Opened {file} in tsserver")

    async def change_file(self, uri: str, start: types.Position, end: types.Position, text: str) -> None:
        """
        Replace a range of an opened document.

        LSP positions are 0-based while tsserver lines and offsets are 1-based.
        """
        file = self._opened_files.get(uri)
        if file is None:
            logger.warning(f"Ignoring change for document not open in tsserver: {uri}")
            return

        await self._notify("change", {
            "file": file,
            "line": start.line + 1,
            "offset": start.character + 1,
            "endLine": end.line + 1,
            "endOffset": end.character + 1,
            "insertString": text,
        })

    async def close_file(self, uri: str) -> None:
        """Close a document in tsserver."""
        file = self._opened_files.pop(uri, None)
        if file is None:
            return
        if self.is_running:
            await self._notify("close", {"file": file})
        logger.debug(f"Closed {file} in tsserver")

    async def stop(self, timeout: float = 5.0) -> None:
        """Ask tsserver to exit, killing it if it does not exit in time."""
        process = self._process
        if process is None:
            return

        if process.returncode is None:
            try:
                await self._notify("exit", None)
            except TsServerError as e:
                logger.debug(f"Could not send exit to tsserver: {e}")

            try:
                await asyncio.wait_for(process.wait(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning("tsserver did not exit in time, killing it")
                process.kill()
                await process.wait()

        if self._reader_task is not None:
            await self._reader_task
        logger.info("tsserver stopped")

    async def _notify(self, command: str, arguments: Any) -> None:
        """Send a request tsserver does not answer."""
        await self.start()
        await self._send({"seq": next(self._seq), "type": "request", "command": command, "arguments": arguments})

    async def _send(self, message: Dict[str, Any]) -> None:
        process = self._process
        if process is None or process.stdin is None or process.returncode is not None:
            raise TsServerError("tsserver is not running")

        data = (json.dumps(message) + "\n").encode("utf-8")
        try:
            process.stdin.write(data)
            await process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            raise TsServerError(f"Lost connection to tsserver: {e}") from e

    async def _read_loop(self, process: asyncio.subprocess.Process) -> None:
        """Read messages until tsserver closes stdout, then fail pending requests."""
        try:
            while True:
                message = await self._read_message(process.stdout)
                if message is None:
                    break
                self._dispatch(message)
        except (asyncio.IncompleteReadError, ValueError) as e:
            # The stream cannot be resynchronised after a bad frame
            logger.error(f"Error reading from tsserver, stopping it: {e}")
            if process.returncode is None:
                try:
                    process.kill()
                except ProcessLookupError:
                    pass
        finally:
            await process.wait()
            logger.info(f"tsserver exited with code {process.returncode}")
            self._on_exit(process)

    async def _read_message(self, stream: asyncio.StreamReader) -> Optional[Dict[str, Any]]:
        """
        Read one framed message.

        Returns:
            The decoded message, or None at end of stream

        Raises:
            ValueError: If the framing or JSON is malformed
        """
        content_length = None
        while True:
            line = await stream.readline()
            if not line:
                return None
            line = line.strip()
            if not line:
                if content_length is not None:
                    break
                continue
            if line.lower().startswith(_CONTENT_LENGTH):
                content_length = int(line[len(_CONTENT_LENGTH):].strip())

        body = await stream.readexactly(content_length)
        return json.loads(body.decode("utf-8"))

    def _dispatch(self, message: Dict[str, Any]) -> None:
        message_type = message.get("type")
        if message_type == "response":
            future = self._pending.get(message.get("request_seq"))
            if future is None or future.done():
                logger.debug(f"Dropping response to abandoned request {message.get('request_seq')}")
                return
            future.set_result(message)
        elif message_type == "event":
            logger.debug(f"tsserver event: {message.get('event')}")
        else:
            logger.debug(f"Ignoring tsserver message of type {message_type}")

    def _on_exit(self, process: asyncio.subprocess.Process) -> None:
        if self._process is not process:
            return

        error = TsServerError(f"tsserver exited with code {process.returncode}")
        for future in self._pending.values():
            if not future.done():
                future.set_exception(error)
        self._pending.clear()

        # Documents have to be reopened in a new process
        self._opened_files.clear()
        self._process = None
        self._start_task = None
        self._reader_task = None

    @staticmethod
    def _to_file_path(uri: str) -> str:
        path = to_fs_path(uri)
        if not path:
            raise ValueError(f"Cannot map document URI to a file path: {uri}")
        return path

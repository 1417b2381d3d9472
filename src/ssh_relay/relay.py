"""Relay of a remote session's byte streams to and from the local console.

Three tasks serve one remote process:

* the stdin writer drains a bounded queue of local input into the remote
  stdin, sending EOF once local input is exhausted;
* the stdout reader copies remote stdout to the local stdout;
* the stderr reader copies remote stderr to the local stderr.

Local input is read by a daemon thread, since a blocking read on a terminal
cannot be awaited or cancelled.
"""

import asyncio
import concurrent.futures
import logging
import sys
import threading
from dataclasses import dataclass
from typing import Optional, TextIO

import asyncssh

from .config import STDIN_QUEUE_SIZE

logger = logging.getLogger(__name__)


@dataclass
class SessionResult:
    """How the remote command ended."""

    exit_status: Optional[int] = None
    exit_signal: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.exit_signal is None and self.exit_status == 0

    def describe(self) -> str:
        if self.exit_signal is not None:
            return f"Process exited with signal {self.exit_signal}"
        if self.exit_status is None:
            return "Process exited without reporting an exit status"
        return f"Process exited with status {self.exit_status}"


class StreamRelay:
    """Wires local stdin/stdout/stderr to a remote process.

    ``process`` is anything shaped like ``asyncssh.SSHClientProcess``: a
    ``stdin`` writer with ``write``/``drain``/``write_eof``, line-iterable
    ``stdout`` and ``stderr`` readers, ``wait_closed()``, and the
    ``exit_status``/``exit_signal`` attributes.
    """

    def __init__(
        self,
        stdin: Optional[TextIO] = None,
        stdout: Optional[TextIO] = None,
        stderr: Optional[TextIO] = None,
        queue_size: int = STDIN_QUEUE_SIZE,
    ):
        self._stdin = stdin
        self._stdout = stdout if stdout is not None else sys.stdout
        self._stderr = stderr if stderr is not None else sys.stderr
        self._queue_size = queue_size

    async def run(self, process) -> SessionResult:
        """Relay until the remote process closes, then report its outcome."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._queue_size)
        self._start_feeder(queue)

        writer = asyncio.create_task(self._write_stdin(queue, process.stdin))
        readers = [
            asyncio.create_task(self._copy_lines(process.stdout, self._stdout)),
            asyncio.create_task(self._copy_lines(process.stderr, self._stderr)),
        ]

        try:
            await asyncio.gather(*readers)
            await process.wait_closed()
        finally:
            for task in (writer, *readers):
                task.cancel()
            await asyncio.gather(writer, *readers, return_exceptions=True)

        exit_signal = process.exit_signal
        result = SessionResult(
            exit_status=process.exit_status,
            exit_signal=exit_signal[0] if exit_signal else None,
        )
        logger.info(result.describe())
        return result

    def _start_feeder(self, queue: asyncio.Queue) -> None:
        if self._stdin is None:
            queue.put_nowait(None)
            return

        loop = asyncio.get_running_loop()
        thread = threading.Thread(
            target=self._feed_stdin,
            args=(self._stdin, queue, loop),
            name="ssh-relay-stdin",
            daemon=True,
        )
        thread.start()

    @staticmethod
    def _feed_stdin(
        stream: TextIO, queue: asyncio.Queue, loop: asyncio.AbstractEventLoop
    ) -> None:
        """Thread body: push local input lines onto the queue, then None."""
        while True:
            try:
                line = stream.readline()
            except (OSError, ValueError) as e:
                logger.warning("Reading local stdin failed: %s", e)
                line = ""
            data = line or None
            try:
                asyncio.run_coroutine_threadsafe(queue.put(data), loop).result()
            except (RuntimeError, concurrent.futures.CancelledError):
                # The relay finished before this input could be delivered.
                return
            if data is None:
                return

    @staticmethod
    async def _write_stdin(queue: asyncio.Queue, remote_stdin) -> None:
        while True:
            data = await queue.get()
            try:
                if data is None:
                    remote_stdin.write_eof()
                    return
                remote_stdin.write(data)
                await remote_stdin.drain()
            except (OSError, asyncssh.Error) as e:
                logger.warning("Writing to remote stdin failed: %s", e)
                if data is None:
                    return

    @staticmethod
    async def _copy_lines(remote, local: TextIO) -> None:
        async for line in remote:
            if not line.endswith("\n"):
                line += "\n"
            local.write(line)
            local.flush()

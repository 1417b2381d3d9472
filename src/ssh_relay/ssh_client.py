"""SSH client for running a command on a remote host."""

import logging
from typing import Optional

import asyncssh

from .agent import agent_socket_path, close_agent, connect_agent, load_agent_keys
from .config import Settings
from .relay import SessionResult, StreamRelay
from .target import ConnectionTarget

logger = logging.getLogger(__name__)


class SSHClient:
    """Async SSH client wrapper using asyncssh.

    Authenticates with the keys held by the local SSH agent only. Host keys
    are not verified.
    """

    def __init__(self, target: ConnectionTarget, settings: Optional[Settings] = None):
        self.target = target
        self.settings = settings if settings is not None else Settings()
        self._agent: Optional[asyncssh.SSHAgentClient] = None
        self._conn: Optional[asyncssh.SSHClientConnection] = None

    async def connect(self):
        """Connect to the agent, then to the SSH server."""
        if self._conn is not None:
            return

        path = agent_socket_path(self.settings)
        self._agent = await connect_agent(path)
        try:
            keys = await load_agent_keys(self._agent)

            logger.info("Connecting to %s", self.target)
            self._conn = await asyncssh.connect(
                host=self.target.hostname,
                port=self.target.port,
                username=self.target.username,
                known_hosts=None,
                client_keys=keys,
                preferred_auth="publickey",
                agent_forwarding=False,
                connect_timeout=self.settings.connect_timeout,
            )
        except BaseException:
            await self.close()
            raise

    async def run(self, command: str, relay: StreamRelay) -> SessionResult:
        """Run ``command`` in a new session, relaying its streams.

        Returns:
            SessionResult with the remote exit status or signal
        """
        if self._conn is None:
            await self.connect()

        logger.info("Running %r on %s", command, self.target.hostname)
        process = await self._conn.create_process(
            command, encoding="utf-8", errors="replace"
        )
        try:
            return await relay.run(process)
        finally:
            process.close()

    async def close(self):
        """Close the SSH connection and the agent connection."""
        if self._conn is not None:
            self._conn.close()
            await self._conn.wait_closed()
            self._conn = None
        if self._agent is not None:
            await close_agent(self._agent)
            self._agent = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

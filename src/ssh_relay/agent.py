"""Access to the local SSH agent."""

import logging
import os
from typing import Optional

import asyncssh

from .config import Settings
from .errors import AgentError

logger = logging.getLogger(__name__)


def agent_socket_path(settings: Optional[Settings] = None) -> str:
    """Return the agent socket: the configured one, else $SSH_AUTH_SOCK."""
    if settings is not None and settings.agent_socket:
        return settings.agent_socket

    path = os.environ.get("SSH_AUTH_SOCK", "")
    if not path:
        raise AgentError(
            "SSH_AUTH_SOCK is not set; start ssh-agent or set agent_socket "
            "in the config file"
        )
    return path


async def connect_agent(path: str) -> asyncssh.SSHAgentClient:
    """Open a client for the agent listening on the UNIX socket ``path``."""
    logger.debug("Connecting to SSH agent at %s", path)

    try:
        agent = await asyncssh.connect_agent(path)
    except (OSError, asyncssh.Error) as e:
        raise AgentError(f"Cannot connect to SSH agent at {path}: {e}") from e

    if agent is None:
        raise AgentError(f"Cannot connect to SSH agent at {path}")
    return agent


async def load_agent_keys(agent: asyncssh.SSHAgentClient) -> list:
    """List the identities held by the agent.

    The returned key pairs send their signing requests through ``agent``,
    which must stay open for as long as the keys are in use.
    """
    try:
        keys = await agent.get_keys()
    except (OSError, ValueError, asyncssh.Error) as e:
        raise AgentError(f"Cannot list SSH agent keys: {e}") from e

    if not keys:
        raise AgentError("SSH agent holds no keys; add one with ssh-add")

    logger.info("Loaded %d key(s) from SSH agent", len(keys))
    return keys


async def close_agent(agent: asyncssh.SSHAgentClient) -> None:
    """Close the agent connection and wait for it to finish."""
    agent.close()
    await agent.wait_closed()

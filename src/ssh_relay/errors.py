"""Exceptions raised by ssh-relay."""


class SSHRelayError(Exception):
    """Base class for errors reported to the user."""


class ConnectionStringError(SSHRelayError, ValueError):
    """The connection string is not of the form user@host[:port]."""


class ConfigError(SSHRelayError):
    """The configuration file could not be loaded."""


class AgentError(SSHRelayError):
    """The SSH agent is unavailable or holds no keys."""

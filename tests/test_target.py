"""Tests for connection string parsing."""

import pytest
from pydantic import ValidationError

from ssh_relay.errors import ConnectionStringError
from ssh_relay.target import ConnectionTarget, parse_connection_string


# --- Well-formed strings ---


class TestParseValid:
    def test_user_host_port(self):
        t = parse_connection_string("alice@example.com:2222")
        assert (t.username, t.hostname, t.port) == ("alice", "example.com", 2222)

    def test_default_port(self):
        t = parse_connection_string("alice@example.com")
        assert t.port == 22

    def test_custom_default_port(self):
        t = parse_connection_string("alice@example.com", default_port=2200)
        assert t.port == 2200

    def test_explicit_port_beats_default(self):
        t = parse_connection_string("alice@example.com:23", default_port=2200)
        assert t.port == 23

    def test_ipv4_address(self):
        t = parse_connection_string("root@10.0.0.5:22")
        assert t.hostname == "10.0.0.5"

    def test_bracketed_ipv6(self):
        t = parse_connection_string("bob@[::1]:2222")
        assert t.hostname == "::1"
        assert t.port == 2222
        assert t.address == "[::1]:2222"

    def test_bracketed_ipv6_without_port(self):
        t = parse_connection_string("bob@[fe80::1]")
        assert t.hostname == "fe80::1"
        assert t.port == 22

    def test_str(self):
        assert str(parse_connection_string("alice@host:2022")) == "alice@host:2022"


# --- Malformed strings ---


class TestParseInvalid:
    @pytest.mark.parametrize(
        "conn_str",
        ["example.com", "a@b@c", ""],
    )
    def test_wrong_number_of_at_signs(self, conn_str):
        with pytest.raises(ConnectionStringError, match="Invalid connection string format"):
            parse_connection_string(conn_str)

    def test_non_numeric_port(self):
        with pytest.raises(ConnectionStringError, match="Invalid port 'ssh'"):
            parse_connection_string("alice@host:ssh")

    def test_empty_port(self):
        with pytest.raises(ConnectionStringError, match="Invalid port"):
            parse_connection_string("alice@host:")

    def test_port_out_of_range(self):
        with pytest.raises(ConnectionStringError, match="out of range"):
            parse_connection_string("alice@host:70000")

    def test_port_zero(self):
        with pytest.raises(ConnectionStringError, match="out of range"):
            parse_connection_string("alice@host:0")

    def test_empty_user(self):
        with pytest.raises(ConnectionStringError, match="username"):
            parse_connection_string("@host")

    def test_empty_host(self):
        with pytest.raises(ConnectionStringError, match="hostname"):
            parse_connection_string("alice@:22")

    def test_whitespace_in_user(self):
        with pytest.raises(ConnectionStringError):
            parse_connection_string("al ice@host")

    def test_unbracketed_ipv6_rejected(self):
        with pytest.raises(ConnectionStringError, match="Too many ':'"):
            parse_connection_string("bob@::1:22")

    def test_unterminated_bracket(self):
        with pytest.raises(ConnectionStringError, match="Unterminated"):
            parse_connection_string("bob@[::1:22")

    def test_garbage_after_bracket(self):
        with pytest.raises(ConnectionStringError, match="after ']'"):
            parse_connection_string("bob@[::1]x22")

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            parse_connection_string("nope")


class TestConnectionTargetModel:
    def test_rejects_bad_port_directly(self):
        with pytest.raises(ValidationError):
            ConnectionTarget(username="a", hostname="h", port=65536)

    def test_address_plain_host(self):
        assert ConnectionTarget(username="a", hostname="h").address == "h:22"

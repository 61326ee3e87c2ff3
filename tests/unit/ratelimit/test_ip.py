"""Unit tests for client IP extraction and hashing."""

import pytest

from brainrot.ratelimit.ip import (
    DEFAULT_IP,
    extract_client_ip,
    hash_ip,
    is_private_ip,
    is_valid_ip,
    sanitize_ip,
)


class TestExtractClientIP:
    """Tests for header priority and fallbacks."""

    def test_cloudflare_header_wins(self) -> None:
        headers = {
            "cf-connecting-ip": "203.0.113.7",
            "x-real-ip": "198.51.100.1",
            "x-forwarded-for": "192.0.2.1",
        }
        result = extract_client_ip(headers)
        assert result.ip == "203.0.113.7"
        assert result.source == "cf-connecting-ip"
        assert result.is_private is False

    def test_forwarded_for_uses_first_entry(self) -> None:
        result = extract_client_ip({"x-forwarded-for": "203.0.113.9, 10.0.0.1, 10.0.0.2"})
        assert result.ip == "203.0.113.9"
        assert result.source == "x-forwarded-for"

    def test_ipv4_port_is_stripped(self) -> None:
        assert extract_client_ip({"x-real-ip": "203.0.113.9:8080"}).ip == "203.0.113.9"

    def test_invalid_header_falls_through(self) -> None:
        """An unusable header does not stop the search."""
        result = extract_client_ip({"cf-connecting-ip": "not-an-ip", "x-real-ip": "198.51.100.4"})
        assert result.ip == "198.51.100.4"
        assert result.source == "x-real-ip"

    def test_ipv6_address(self) -> None:
        assert extract_client_ip({"x-real-ip": "2001:db8::1"}).ip == "2001:db8::1"

    def test_peer_used_without_headers(self) -> None:
        result = extract_client_ip({}, peer="10.1.2.3")
        assert result.ip == "10.1.2.3"
        assert result.source == "peer"
        assert result.is_private is True

    def test_default_when_nothing_usable(self) -> None:
        result = extract_client_ip({"x-real-ip": "garbage"}, peer="also-garbage")
        assert result.ip == DEFAULT_IP
        assert result.source == "default"


class TestIPHelpers:
    """Tests for validation, sanitizing and hashing."""

    @pytest.mark.parametrize("value", ["127.0.0.1", "8.8.8.8", "::1", "2001:db8::2"])
    def test_valid_addresses(self, value: str) -> None:
        assert is_valid_ip(value)

    @pytest.mark.parametrize("value", ["", "999.1.1.1", "abc", "1.2.3"])
    def test_invalid_addresses(self, value: str) -> None:
        assert not is_valid_ip(value)

    def test_private_ranges(self) -> None:
        assert is_private_ip("192.168.1.10")
        assert is_private_ip("127.0.0.1")
        assert not is_private_ip("8.8.8.8")
        assert not is_private_ip("nope")

    @pytest.mark.parametrize("value", ["10.4.0.1", "172.31.255.1", "127.8.0.1", "::1", "fd12::1"])
    def test_private_networks(self, value: str) -> None:
        assert is_private_ip(value)

    @pytest.mark.parametrize(
        "value", ["203.0.113.7", "198.51.100.1", "198.18.0.5", "100.64.0.1", "172.32.0.1", "2001:db8::1"]
    )
    def test_reserved_ranges_count_as_public(self, value: str) -> None:
        assert not is_private_ip(value)

    def test_sanitize_strips_unsafe_characters(self) -> None:
        assert sanitize_ip(" 8.8.8.8\n") == "8.8.8.8"
        assert sanitize_ip("<script>") == DEFAULT_IP
        assert sanitize_ip(None) == DEFAULT_IP

    def test_hash_is_stable_and_salted(self) -> None:
        first = hash_ip("203.0.113.1", "salt-a")
        assert first == hash_ip("203.0.113.1", "salt-a")
        assert first != hash_ip("203.0.113.1", "salt-b")
        assert len(first) == 32
        int(first, 16)

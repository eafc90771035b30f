"""Tests for the pydantic models."""
import pytest
from pydantic import ValidationError

from hue_bridge_discovery.models import (
    CloudRegistryEntry,
    ConfirmedBridge,
    DiscoveryMode,
    SSDPValidationResult,
)


class TestConfirmedBridge:
    def test_defaults(self):
        bridge = ConfirmedBridge(address="10.0.0.5")
        assert bridge.username == ""
        assert bridge.use_https is False

    def test_is_immutable(self):
        bridge = ConfirmedBridge(address="10.0.0.5")
        with pytest.raises(ValidationError):
            bridge.address = "10.0.0.6"

    def test_equal_and_hashable(self):
        assert ConfirmedBridge(address="10.0.0.5") == ConfirmedBridge(address="10.0.0.5")
        assert len({ConfirmedBridge(address="10.0.0.5"), ConfirmedBridge(address="10.0.0.5")}) == 1

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            ConfirmedBridge(address="10.0.0.5", serial="abc")

    def test_urls_without_username(self):
        bridge = ConfirmedBridge(address="10.0.0.5")
        assert bridge.base_url() == "http://10.0.0.5/api"
        assert bridge.to_uri("/config") == "http://10.0.0.5/api/config"

    def test_urls_with_username_and_https(self):
        bridge = ConfirmedBridge(address="10.0.0.5", username="newdeveloper", use_https=True)
        assert bridge.base_url() == "https://10.0.0.5/api"
        assert bridge.to_uri("/lights") == "https://10.0.0.5/api/newdeveloper/lights"


class TestCloudRegistryEntry:
    def test_parses_registry_alias_and_ignores_extra(self):
        entry = CloudRegistryEntry.model_validate(
            {"id": "001788fffe09a206", "internalipaddress": "192.168.1.10", "port": 443, "macaddress": "x"}
        )
        assert entry.address == "192.168.1.10"
        assert entry.port == 443

    def test_accepts_field_name(self):
        assert CloudRegistryEntry(id="abc", address="10.0.0.5").address == "10.0.0.5"

    def test_requires_address(self):
        with pytest.raises(ValidationError):
            CloudRegistryEntry.model_validate({"id": "abc"})


def test_discovery_mode_values():
    assert DiscoveryMode("first_match") is DiscoveryMode.FIRST_MATCH
    assert DiscoveryMode("exhaustive") is DiscoveryMode.EXHAUSTIVE

def test_validation_result_default_reason():
    assert SSDPValidationResult(valid=True).reason == ""

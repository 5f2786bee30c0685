"""Tests for the deploy fingerprint."""
from __future__ import annotations

import json

from conftest import TRANSFER_ABI, trigger_data
from hookmap.domain.fingerprint import event_selector, fingerprint, normalize_network


def _definition(data, node_type="ContractEvent"):
    return {
        "nodes": [{"id": "t", "type": node_type, "position": {"x": 0, "y": 0}, "data": data}],
        "edges": [],
    }


EXPECTED = "eth-mainnet|0xa0b86991c6218b36c1d19d4a2e9eb0ce3606eb48|Transfer(address,address,uint256)"


class TestFingerprint:
    """Test the network|address|selector key."""

    def test_configured_trigger(self):
        assert fingerprint(_definition(trigger_data())) == EXPECTED

    def test_abi_as_mapping(self):
        assert fingerprint(_definition(trigger_data(eventAbi=TRANSFER_ABI))) == EXPECTED

    def test_none_without_trigger(self):
        assert fingerprint({"nodes": [], "edges": []}) is None
        assert fingerprint(None) is None
        assert fingerprint(_definition(trigger_data(), node_type="Webhook")) is None

    def test_none_unless_fully_configured(self):
        """Test any missing field yields no fingerprint."""
        for key in ("address", "eventAbi", "networkKey"):
            data = trigger_data()
            del data[key]
            assert fingerprint(_definition(data)) is None, key

    def test_legacy_network_name(self):
        data = trigger_data(network="Base Sepolia")
        del data["networkKey"]

        assert fingerprint(_definition(data)).startswith("base-sepolia|")

    def test_invariant_to_data_key_order(self):
        data = trigger_data(extra="x")
        reordered = dict(reversed(list(data.items())))

        assert fingerprint(_definition(data)) == fingerprint(_definition(reordered))

    def test_unrelated_data_does_not_matter(self):
        assert fingerprint(_definition(trigger_data(label="renamed"))) == EXPECTED

    def test_address_is_case_insensitive(self):
        upper = trigger_data(address="0xA0B86991C6218B36C1D19D4A2E9EB0CE3606EB48")
        assert fingerprint(_definition(upper)) == EXPECTED

    def test_custom_trigger_type(self):
        definition = _definition(trigger_data(), node_type="BlockTrigger")

        assert fingerprint(definition) is None
        assert fingerprint(definition, trigger_type="BlockTrigger") == EXPECTED


class TestEventSelector:
    """Test the event signature part."""

    def test_selector(self):
        assert event_selector(TRANSFER_ABI) == "Transfer(address,address,uint256)"
        assert event_selector(json.dumps(TRANSFER_ABI)) == "Transfer(address,address,uint256)"

    def test_defaults(self):
        assert event_selector("not json") == "event:?()"
        assert event_selector({"name": "Ping", "inputs": [{"name": "x"}]}) == "Ping(unknown)"

    def test_normalize_network(self):
        assert normalize_network({"networkKey": "base-mainnet", "network": "Other"}) == "base-mainnet"
        assert normalize_network({"network": "Ethereum  Mainnet"}) == "ethereum-mainnet"
        assert normalize_network({}) == ""

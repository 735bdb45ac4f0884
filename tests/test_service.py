"""Tests for lookup orchestration."""

import pytest
from conftest import (
    TEST_ADDRESS,
    TEST_PUBLIC_KEY,
    WTP_ADDRESS,
    WTP_PUBLIC_KEY,
    FakeBackend,
)

from bnsgateway.backend import BackendError, JsonRecordBackend
from bnsgateway.codec import encode_address
from bnsgateway.metrics import METRICS_REGISTRY
from bnsgateway.service import LookupService
from bnsgateway.store import RecordStore, ReverseIndex


def _sample(name: str, labels: dict[str, str] | None = None) -> float:
    return METRICS_REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestForward:
    """Domain -> address."""

    @pytest.mark.asyncio
    async def test_forward(self, service: LookupService, fake_backend: FakeBackend) -> None:
        """Test resolving a registered domain."""
        assert await service.forward("test") == TEST_ADDRESS
        assert fake_backend.calls == [("test.banano-testing.cc", 198)]

    @pytest.mark.asyncio
    async def test_forward_unknown(self, service: LookupService) -> None:
        """Test that an unknown domain resolves to None."""
        assert await service.forward("unknown-domain") is None

    @pytest.mark.asyncio
    async def test_forward_backend_error_propagates(self, service: LookupService) -> None:
        """Test that backend failures surface from a single lookup."""
        errors_before = _sample("backend_errors_total")
        with pytest.raises(BackendError):
            await service.forward("broken")
        assert _sample("backend_errors_total") == errors_before + 1

    @pytest.mark.asyncio
    async def test_forward_custom_naming(self, index: ReverseIndex) -> None:
        """Test namespace, coin type and prefix are passed through."""
        backend = FakeBackend(records={("wtp.banano.cc", 165): bytes.fromhex(TEST_PUBLIC_KEY)})
        service = LookupService(
            backend,
            index,
            namespace="banano.cc",
            coin_type=165,
            address_prefix="nano_",
        )
        assert await service.forward("wtp") == "nano_" + TEST_ADDRESS.removeprefix("ban_")

    @pytest.mark.asyncio
    async def test_forward_metrics(self, service: LookupService) -> None:
        """Test request and miss counters."""
        labels = {"kind": "forward"}
        requests_before = _sample("lookup_requests_total", labels)
        misses_before = _sample("lookup_misses_total", labels)

        await service.forward("test")
        await service.forward("unknown-domain")

        assert _sample("lookup_requests_total", labels) == requests_before + 2
        assert _sample("lookup_misses_total", labels) == misses_before + 1


class TestBatchForward:
    """Batched domain -> address."""

    @pytest.mark.asyncio
    async def test_batch_sentinel(self, service: LookupService) -> None:
        """Test that unresolved domains map to an empty string."""
        result = await service.batch_forward(["wtp", "unknown-domain"])
        assert result == {
            "wtp": encode_address(bytes.fromhex(WTP_PUBLIC_KEY)),
            "unknown-domain": "",
        }

    @pytest.mark.asyncio
    async def test_batch_keeps_going_after_backend_error(self, service: LookupService) -> None:
        """Test that one failing item does not abort the batch."""
        result = await service.batch_forward(["broken", "test"])
        assert result == {"broken": "", "test": TEST_ADDRESS}

    @pytest.mark.asyncio
    async def test_batch_empty(self, service: LookupService) -> None:
        """Test an empty batch."""
        assert await service.batch_forward([]) == {}

    @pytest.mark.asyncio
    async def test_batch_order_follows_input(self, service: LookupService) -> None:
        """Test that the result keys come back in input order."""
        result = await service.batch_forward(["unknown-domain", "test", "wtp"])
        assert list(result) == ["unknown-domain", "test", "wtp"]


class TestReverse:
    """Address -> domain."""

    def test_reverse(self, service: LookupService) -> None:
        """Test resolving a registered address."""
        assert service.reverse(WTP_ADDRESS) == "wtp"

    def test_reverse_unknown_and_malformed(self, service: LookupService) -> None:
        """Test that unknown and malformed addresses are both None."""
        assert service.reverse(encode_address(bytes(32))) is None
        assert service.reverse("not_an_address") is None

    def test_batch_reverse(self, service: LookupService) -> None:
        """Test the empty-string sentinel of batch reverse lookups."""
        result = service.batch_reverse([WTP_ADDRESS, "not_an_address", TEST_ADDRESS])
        assert result == {WTP_ADDRESS: "wtp", "not_an_address": "", TEST_ADDRESS: "test"}

    def test_reverse_metrics(self, service: LookupService) -> None:
        """Test request and miss counters."""
        labels = {"kind": "reverse"}
        requests_before = _sample("lookup_requests_total", labels)
        misses_before = _sample("lookup_misses_total", labels)

        service.batch_reverse([WTP_ADDRESS, "not_an_address"])

        assert _sample("lookup_requests_total", labels) == requests_before + 2
        assert _sample("lookup_misses_total", labels) == misses_before + 1


class TestJsonRecordBackend:
    """Forward lookups served from the JSON record file."""

    @pytest.mark.asyncio
    async def test_addr_coin_type(self, store: RecordStore) -> None:
        """Test reading a record's address bytes."""
        backend = JsonRecordBackend(store)
        record = await backend.addr_coin_type("test.banano-testing.cc", 198)
        assert record is not None
        assert record.addr == bytes.fromhex(TEST_PUBLIC_KEY)

    @pytest.mark.asyncio
    async def test_missing_slot(self, store: RecordStore) -> None:
        """Test names without the slot and unknown names."""
        backend = JsonRecordBackend(store)
        assert await backend.addr_coin_type("another-monkey.banano-testing.cc", 198) is None
        assert await backend.addr_coin_type("unknown.banano-testing.cc", 198) is None

    @pytest.mark.parametrize(
        "value",
        [f"0X{TEST_PUBLIC_KEY.upper()}", f"0x{TEST_PUBLIC_KEY.upper()}", TEST_PUBLIC_KEY],
    )
    @pytest.mark.asyncio
    async def test_stored_hex_variants(self, value: str) -> None:
        """Test upper case keys, an upper case 0X prefix and no prefix at all."""
        store = RecordStore({"mixed.banano-testing.cc": {"addresses": {"198": value}}})
        backend = JsonRecordBackend(store)
        record = await backend.addr_coin_type("mixed.banano-testing.cc", 198)
        assert record is not None
        assert record.addr == bytes.fromhex(TEST_PUBLIC_KEY)

    @pytest.mark.asyncio
    async def test_forward_and_reverse_agree_on_upper_case_prefix(self) -> None:
        """Test that a record reachable by reverse lookup also resolves forward."""
        value = f"0X{TEST_PUBLIC_KEY.upper()}"
        store = RecordStore({"mixed.banano-testing.cc": {"addresses": {"198": value}}})
        index = ReverseIndex(store, coin_type=198, namespace="banano-testing.cc")
        service = LookupService(JsonRecordBackend(store), index)
        assert service.reverse(TEST_ADDRESS) == "mixed"
        assert await service.forward("mixed") == TEST_ADDRESS

    @pytest.mark.parametrize("value", ["0xnothex", "0x0d74", "0x" + "00" * 20])
    @pytest.mark.asyncio
    async def test_unusable_value(self, value: str) -> None:
        """Test that bad hex or a wrong key length is a backend error."""
        store = RecordStore({"bad.banano-testing.cc": {"addresses": {"198": value}}})
        backend = JsonRecordBackend(store)
        with pytest.raises(BackendError):
            await backend.addr_coin_type("bad.banano-testing.cc", 198)

    @pytest.mark.asyncio
    async def test_end_to_end(self, store: RecordStore, index: ReverseIndex) -> None:
        """Test forward then reverse through the JSON backend."""
        service = LookupService(JsonRecordBackend(store), index)
        address = await service.forward("wtp")
        assert address is not None
        assert service.reverse(address) == "wtp"
        assert await service.forward("another-monkey") is None

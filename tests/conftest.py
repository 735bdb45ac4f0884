"""Test fixtures and utilities."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
from litestar.testing import AsyncTestClient

from bnsgateway.backend import BackendError
from bnsgateway.config import Config
from bnsgateway.models import AddressBytesRecord
from bnsgateway.server import create_app
from bnsgateway.service import LookupService
from bnsgateway.store import RecordStore, ReverseIndex

DATA_DIR = Path(__file__).parent / "data"

WTP_ADDRESS = "ban_1nz45e65wn8uouw6eh1sbjpcobj1dk4x7o5w9w1sjgdpc8b361txr4h1qtoj"
WTP_PUBLIC_KEY = "53e21b083e50dbaef8463c194c6caaa6205c85d2d47c3f0198b976519212035d"

TEST_ADDRESS = "ban_15dng9kx49xfumkm4q6qpaxneie6oynebiwpums3ktdd6t3f3dhp69nxgb38"
TEST_PUBLIC_KEY = "0d7471e5d11faddce5315c97b23b464184afa8c4c396dcf219696b2682d0adf6"

OTHER_ADDRESS = "ban_1anrzcuwe64rwxzcco8dkhpyxpi8kd7zsjc1oeimpc3ppca4mrjtwnqposrs"
OTHER_PUBLIC_KEY = "2298fab7c61058e77ea554cb93edeeda0692cbfcc540ab213b2836b29029e23a"


class FakeBackend:
    """In-memory forward lookup backend.

    Names listed in ``failing`` raise BackendError instead of resolving.
    """

    def __init__(
        self,
        records: dict[tuple[str, int], bytes] | None = None,
        failing: set[str] | None = None,
    ) -> None:
        self.records = records or {}
        self.failing = failing or set()
        self.calls: list[tuple[str, int]] = []

    async def addr_coin_type(self, name: str, coin_type: int) -> AddressBytesRecord | None:
        self.calls.append((name, coin_type))
        if name in self.failing:
            raise BackendError(f"backend unavailable for {name}")
        addr = self.records.get((name, coin_type))
        return AddressBytesRecord(addr=addr) if addr is not None else None


@pytest.fixture
def records_path() -> Path:
    """Path to the sample JSON record file."""
    return DATA_DIR / "records.json"


@pytest.fixture
def config(records_path: Path) -> Config:
    """Create a test configuration."""
    return Config(host="127.0.0.1", port=8080, log_level="DEBUG", records_path=records_path)


@pytest.fixture
def store(records_path: Path) -> RecordStore:
    """Record store loaded from the sample file."""
    return RecordStore.from_file(records_path)


@pytest.fixture
def index(store: RecordStore) -> ReverseIndex:
    """Reverse index over the sample records."""
    return ReverseIndex(store, coin_type=198, namespace="banano-testing.cc")


@pytest.fixture
def fake_backend() -> FakeBackend:
    """Backend that only knows wtp and test, and fails for broken."""
    return FakeBackend(
        records={
            ("wtp.banano-testing.cc", 198): bytes.fromhex(WTP_PUBLIC_KEY),
            ("test.banano-testing.cc", 198): bytes.fromhex(TEST_PUBLIC_KEY),
        },
        failing={"broken.banano-testing.cc"},
    )


@pytest.fixture
def service(fake_backend: FakeBackend, index: ReverseIndex) -> LookupService:
    """Lookup service over the fake backend and the sample index."""
    return LookupService(fake_backend, index)


@pytest.fixture
async def client(config: Config) -> AsyncGenerator[AsyncTestClient, None]:
    """Create a test client backed by the sample record file."""
    app = create_app(config)
    async with AsyncTestClient(app) as client:
        yield client


@pytest.fixture
async def client_with_failing_backend(
    config: Config,
) -> AsyncGenerator[AsyncTestClient, None]:
    """Create a test client whose forward backend fails for every name."""
    backend = FakeBackend(failing={"wtp.banano-testing.cc", "test.banano-testing.cc"})
    app = create_app(config, backend=backend)
    async with AsyncTestClient(app) as client:
        yield client

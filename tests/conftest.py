"""
Shared fixtures: services wired to the fake RPC client.
"""

import pytest
from solders.keypair import Keypair

from auto_sender.core.config import Settings
from auto_sender.services.auto_sender_service import AutoSenderService
from auto_sender.services.secret_store import SecretStore
from auto_sender.services.solana_client import SolanaClient
from tests.fakes import FakeAsyncClient, FakeClock


@pytest.fixture
def rpc() -> FakeAsyncClient:
    return FakeAsyncClient()


@pytest.fixture
def solana_client(rpc) -> SolanaClient:
    return SolanaClient(client=rpc, commitment="processed")


@pytest.fixture
def source() -> Keypair:
    return Keypair()


@pytest.fixture
def destination() -> str:
    return str(Keypair().pubkey())


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app_settings() -> Settings:
    # Long interval: tests drive ticks by hand through run_tick()
    return Settings(
        scheduler_interval_ms=60_000,
        evaluation_timeout_seconds=5,
        sol_to_usd_rate=195,
        min_usd_threshold=15,
        min_transfer_amount=0.0001,
        secret_ttl_seconds=300,
        secret_sweep_interval_seconds=60,
    )


@pytest.fixture
def service(solana_client, app_settings, clock) -> AutoSenderService:
    return AutoSenderService(
        solana_client=solana_client,
        app_settings=app_settings,
        secret_store=SecretStore(ttl_seconds=app_settings.secret_ttl_seconds, clock=clock),
    )


@pytest.fixture
async def running_service(service):
    yield service
    await service.close()

"""
Pytest fixtures for the Yafa bridge tests.
"""
import time

import pytest

from yafa_bridge import config as config_module
from yafa_bridge.config import NetworkConfig
from yafa_bridge.signer import LocalSigner
from tests.test_helpers import FakeChain, make_test_config, TEST_PRIV_KEY, ONE_ETH

_ENV_VARS = ("L1_RPC_URL", "PRIVATE_KEY", "L2_BALANCE_ADDRESS", "YAFA_ARTIFACT_PATH", "SEPOLIA_RPC_URL")


# Make time.sleep instantaneous so polling doesn't slow the suite down
@pytest.fixture(autouse=True)
def _fast_sleep(monkeypatch):
    monkeypatch.setattr(time, "sleep", lambda *_a, **_kw: None)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    """Keep the developer's environment and .env file out of the tests."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, "load_dotenv", lambda *_a, **_kw: False)
    NetworkConfig._networks_cache = None
    yield
    NetworkConfig._networks_cache = None


@pytest.fixture
def signer():
    """Deterministic signing identity"""
    return LocalSigner(TEST_PRIV_KEY)


@pytest.fixture
def config():
    return make_test_config()


@pytest.fixture
def l1(signer):
    """Source chain holding 1 ETH for the test signer"""
    return FakeChain(chain_id=11155111, name="sepolia", balances={signer.address: ONE_ETH})


@pytest.fixture
def l2():
    """Destination chain with nothing deployed and an empty balance"""
    return FakeChain(chain_id=42069, name="yafa-l2")

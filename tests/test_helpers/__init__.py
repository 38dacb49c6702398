from .fake_chain import (
    FakeChain,
    make_test_config,
    TEST_PRIV_KEY,
    TEST_L1_RPC_URL,
    TEST_L2_RPC_URL,
    TEST_PORTAL,
    ONE_ETH,
)

__all__ = [
    "FakeChain",
    "make_test_config",
    "TEST_PRIV_KEY",
    "TEST_L1_RPC_URL",
    "TEST_L2_RPC_URL",
    "TEST_PORTAL",
    "ONE_ETH",
]

from .builders import (
    TEST_RPC_URL,
    TEST_PRIV_KEY,
    TEST_ADDRESS,
    TEST_CHAIN_ID,
    TEST_CONTRACT,
    TEST_GAS_PRICE,
    GREETER_ABI,
    GREETER_BYTECODE,
    tx_hash,
    make_receipt,
)

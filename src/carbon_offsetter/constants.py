"""Network endpoints and footprint constants."""

from decimal import Decimal
from typing import TypedDict


class NetworkEndpoints(TypedDict):
    rpc_url: str
    explorer_api_url: str
    explorer_url: str
    chain_id: int


# 0.00000036 TCO2 (0.00036 kg) per transaction. A flat approximation, not metered.
PER_TRANSACTION_EMISSIONS_KG = Decimal("0.00036")
KG_PER_TONNE = Decimal(1000)
TONNES_QUANTUM = Decimal("1E-8")
TONNES_DISPLAY_WIDTH = 10

# txlist never returns more than this many records; older history is cut off.
PROVIDER_MAX_RECORDS = 10_000

# Pooled reserve token. Only its redeemed TCO2 variants can be used to offset.
RESERVE_TOKEN_SYMBOL = "BCT"

# Nonces are sent to ContractOffsetter with 18 implied decimals.
NONCE_DECIMALS = 18

POLYGON_ENDPOINTS: NetworkEndpoints = {
    "rpc_url": "https://polygon-rpc.com",
    "explorer_api_url": "https://api.polygonscan.com/api",
    "explorer_url": "https://polygonscan.com",
    "chain_id": 137,
}

MUMBAI_ENDPOINTS: NetworkEndpoints = {
    "rpc_url": "https://rpc-mumbai.maticvigil.com",
    "explorer_api_url": "https://api-testnet.polygonscan.com/api",
    "explorer_url": "https://mumbai.polygonscan.com",
    "chain_id": 80001,
}

AMOY_ENDPOINTS: NetworkEndpoints = {
    "rpc_url": "https://rpc-amoy.polygon.technology",
    "explorer_api_url": "https://api-amoy.polygonscan.com/api",
    "explorer_url": "https://amoy.polygonscan.com",
    "chain_id": 80002,
}

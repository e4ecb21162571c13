from __future__ import annotations

import json
from functools import cache
from pathlib import Path

ABIS_DIR = Path(__file__).parent / "abis"

CONTRACT_OFFSETTER_ABI_PATH = ABIS_DIR / "ContractOffsetter.json"
ERC20_ABI_PATH = ABIS_DIR / "ERC20.json"


def load_abi(path: str | Path) -> list[dict]:
    """Load an ABI from a JSON file and return its "abi" field.

    Args:
        path: Path to the JSON file containing an "abi" field.

    Returns:
        ABI as a list of dictionaries.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
        KeyError: If the JSON does not contain an "abi" field.
    """
    p = Path(path)
    with p.open() as f:
        data = json.load(f)
    return data["abi"]


@cache
def load_contract_offsetter_abi() -> list[dict]:
    """Load the ContractOffsetter ABI."""
    return load_abi(CONTRACT_OFFSETTER_ABI_PATH)


@cache
def load_erc20_abi() -> list[dict]:
    """Load the ERC20 ABI."""
    return load_abi(ERC20_ABI_PATH)

# main/tron.py
"""Simulated TRON account generation and the loose TRC20 address check."""
from __future__ import annotations

import re
import secrets

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

# alphanumeric, "T" prefix, 34 chars. No checksum verification.
TRC20_ADDRESS_RE = re.compile(r"^T[A-Za-z0-9]{33}$")


def is_trc20_address(address: str | None) -> bool:
    return bool(address) and bool(TRC20_ADDRESS_RE.match(address))


def create_account() -> dict:
    """Return {"address", "private_key"} shaped like a TRON account (not a real keypair)."""
    body = "".join(secrets.choice(BASE58_ALPHABET) for _ in range(33))
    return {"address": f"T{body}", "private_key": secrets.token_hex(32)}


def simulated_txid() -> str:
    return secrets.token_hex(32)

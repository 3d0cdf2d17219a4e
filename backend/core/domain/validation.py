"""
core.domain.validation — Input guards shared by every service layer.

Economy and risk services treat malformed input as the only hard error,
so these guards run before any store access.
"""

from __future__ import annotations

from typing import Any

from core.domain.exceptions import InvalidAmount, InvalidWallet

MAX_WALLET_LENGTH = 128


def ensure_amount(amount: Any, *, allow_zero: bool = False) -> int:
    """
    Return ``amount`` if it is a usable NP amount, else raise ``InvalidAmount``.

    Booleans and floats are rejected (``True`` would otherwise pass as 1 and
    NaN compares false against everything).
    """
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(amount)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(amount)
    return amount


def ensure_wallet(wallet: Any) -> str:
    """Return the stripped wallet address, or raise ``InvalidWallet``."""
    if not isinstance(wallet, str):
        raise InvalidWallet(wallet)
    wallet = wallet.strip()
    if not wallet or len(wallet) > MAX_WALLET_LENGTH:
        raise InvalidWallet(wallet)
    return wallet

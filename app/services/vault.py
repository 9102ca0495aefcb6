"""Envelope encryption for stored account passwords."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from cryptography.fernet import Fernet

from app.config import get_settings
from app.models.account import Account


@dataclass(frozen=True, slots=True)
class SealedPassword:
    """Encrypted password and its wrapped data key."""

    encrypted_password: bytes
    wrapped_data_key: bytes


@lru_cache(maxsize=1)
def _master_fernet() -> Fernet:
    """Return the master wrapping cipher.

    Returns
    -------
    Fernet
        Cipher bound to the configured master key file.
    """
    return Fernet(_load_or_create_master_key(get_settings().master_key_path))


def _load_or_create_master_key(master_key_path: Path) -> bytes:
    """Load the local master key, creating it on first use.

    Parameters
    ----------
    master_key_path : Path
        File path for the master key.

    Returns
    -------
    bytes
        Symmetric master key.
    """
    if master_key_path.exists():
        return master_key_path.read_bytes()
    key = Fernet.generate_key()
    master_key_path.write_bytes(key)
    return key


def seal_password(plaintext: str) -> SealedPassword:
    """Encrypt a password under a fresh per-account data key.

    Parameters
    ----------
    plaintext : str
        Password to protect.

    Returns
    -------
    SealedPassword
        Ciphertext and wrapped data key.
    """
    data_key = Fernet.generate_key()
    return SealedPassword(
        encrypted_password=Fernet(data_key).encrypt(plaintext.encode("utf-8")),
        wrapped_data_key=_master_fernet().encrypt(data_key),
    )


def store_password(account: Account, plaintext: str | None) -> None:
    """Set or clear the sealed password on an account.

    Parameters
    ----------
    account : Account
        Account row to update.
    plaintext : str | None
        New password, or ``None`` to clear it.
    """
    if plaintext is None:
        account.encrypted_password = None
        account.wrapped_data_key = None
        return
    sealed = seal_password(plaintext)
    account.encrypted_password = sealed.encrypted_password
    account.wrapped_data_key = sealed.wrapped_data_key


def open_password(account: Account) -> str | None:
    """Decrypt an account password.

    Parameters
    ----------
    account : Account
        Account row.

    Returns
    -------
    str | None
        Plaintext password, or ``None`` when none is stored.
    """
    if account.encrypted_password is None or account.wrapped_data_key is None:
        return None
    data_key = _master_fernet().decrypt(account.wrapped_data_key)
    return Fernet(data_key).decrypt(account.encrypted_password).decode("utf-8")

"""Token helpers."""

import hashlib
from dataclasses import dataclass
from secrets import token_urlsafe

from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

password_hasher = PasswordHasher()


@dataclass(frozen=True, slots=True)
class IssuedToken:
    """Freshly generated token and its stored forms.

    Attributes
    ----------
    plaintext : str
        Raw token, shown to the caller exactly once.
    token_hash : str
        Argon2 hash kept for verification.
    token_lookup : str
        SHA-256 digest used to find candidate rows.
    """

    plaintext: str
    token_hash: str
    token_lookup: str


def generate_plaintext_token(prefix: str) -> str:
    """Generate an opaque token.

    Parameters
    ----------
    prefix : str
        Human-readable token prefix (``mbr`` for members, ``inv`` for invites).

    Returns
    -------
    str
        New unguessable token.
    """
    return f"{prefix}_{token_urlsafe(24)}"


def lookup_hash(token: str) -> str:
    """Compute a fast, non-secret hash for DB lookup.

    Parameters
    ----------
    token : str
        Raw token.

    Returns
    -------
    str
        Hex-encoded SHA-256 digest.
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_member_token() -> IssuedToken:
    """Generate a member bearer token with its hash and lookup digest.

    Returns
    -------
    IssuedToken
        Plaintext plus stored forms.
    """
    plaintext = generate_plaintext_token("mbr")
    return IssuedToken(
        plaintext=plaintext,
        token_hash=password_hasher.hash(plaintext),
        token_lookup=lookup_hash(plaintext),
    )


def verify_token(token: str, token_hash: str) -> bool:
    """Verify a token against its argon2 hash.

    Parameters
    ----------
    token : str
        Raw token.
    token_hash : str
        Stored token hash.

    Returns
    -------
    bool
        Whether the token matches.
    """
    try:
        return password_hasher.verify(token_hash, token)
    except VerifyMismatchError:
        return False

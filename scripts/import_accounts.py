"""Import shared accounts from a JSON export file through the admin API."""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import Any

import anyio
import httpx


def normalize_accounts(data: Any) -> list[dict[str, str]]:
    """Keep well-formed account entries from a decoded export file.

    Parameters
    ----------
    data : Any
        Decoded JSON document, expected to be a list of objects.

    Returns
    -------
    list[dict[str, str]]
        Entries with string ``username``, ``email`` and ``password``.
    """
    if not isinstance(data, list):
        return []
    accounts: list[dict[str, str]] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        username = item.get("username")
        email = item.get("email")
        password = item.get("password")
        if not all(isinstance(value, str) for value in (username, email, password)):
            continue
        if not username.strip() or not password:
            continue
        accounts.append(
            {"username": username.strip(), "email": email.strip(), "password": password}
        )
    return accounts


async def import_file(client: httpx.AsyncClient, path: Path) -> dict[str, Any]:
    """Send the accounts of an export file to the import endpoint.

    Parameters
    ----------
    client : httpx.AsyncClient
        Authenticated admin API client.
    path : Path
        JSON file produced by the export endpoint.

    Returns
    -------
    dict[str, Any]
        Import response payload.
    """
    accounts = normalize_accounts(json.loads(path.read_text(encoding="utf-8")))
    if not accounts:
        raise SystemExit(f"No valid accounts found in {path}")
    response = await client.post("/v1/accounts/import", json=accounts)
    response.raise_for_status()
    return response.json()


async def main() -> None:
    """Import the file named on the command line.

    Returns
    -------
    None
        Imports accounts and prints a short summary.
    """
    if len(sys.argv) != 2:
        raise SystemExit("usage: import_accounts.py ACCOUNTS.json")
    base_url = os.environ.get("ACCOUNT_POOL_BASE_URL", "http://127.0.0.1:8000")
    admin_token = os.environ.get("ACCOUNT_POOL_ADMIN_TOKEN")
    if not admin_token:
        raise SystemExit("ACCOUNT_POOL_ADMIN_TOKEN is required")

    async with httpx.AsyncClient(
        base_url=base_url,
        headers={"Authorization": f"Bearer {admin_token}"},
        timeout=10.0,
    ) as client:
        result = await import_file(client, Path(sys.argv[1]))
    print(f"imported {len(result['created'])}, skipped {len(result['skipped'])}")
    for username in result["skipped"]:
        print(f"skipped existing {username}")


if __name__ == "__main__":
    anyio.run(main)

"""EconomyClient — HTTP adapter for the external economy engine.

Implements both BalanceSourceProtocol and IdentityDirectoryProtocol against:
  GET /players                 -> [{"uuid": "...", "name": "..." | null}, ...]
  GET /players/{uuid}          -> {"uuid": "...", "name": "..." | null}   (404 = unknown)
  GET /players/{uuid}/balance  -> {"balance": 123.45}

Every call is bounded by ECONOMY_API_TIMEOUT_SECONDS. Transport errors, non-2xx
responses and malformed payloads all surface as BalanceSourceError.
"""

import logging
import math
from typing import Any

import httpx

from config.settings import settings
from src.bt_common.errors import BalanceSourceError

logger = logging.getLogger(__name__)


class EconomyClient:
    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.ECONOMY_API_URL,
            timeout=timeout if timeout is not None else settings.ECONOMY_API_TIMEOUT_SECONDS,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _get_json(self, path: str) -> Any:
        try:
            response = await self._client.get(path)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise BalanceSourceError(
                f"GET {path} returned {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise BalanceSourceError(f"GET {path}: {exc!r}") from exc
        except ValueError as exc:
            raise BalanceSourceError(f"GET {path}: invalid JSON") from exc

    async def _list_players(self) -> list[dict[str, Any]]:
        payload = await self._get_json("/players")
        if not isinstance(payload, list):
            raise BalanceSourceError("GET /players: expected a list")
        return [p for p in payload if isinstance(p, dict) and p.get("uuid")]

    # --- BalanceSourceProtocol ---

    async def list_known_identities(self) -> list[str]:
        return [str(p["uuid"]) for p in await self._list_players()]

    async def get_balance(self, identity: str) -> float:
        payload = await self._get_json(f"/players/{identity}/balance")
        try:
            value = float(payload["balance"])
        except (KeyError, TypeError, ValueError) as exc:
            raise BalanceSourceError(
                f"GET /players/{identity}/balance: missing or non-numeric balance"
            ) from exc
        # NaN and infinities never compare as a change
        if not math.isfinite(value):
            raise BalanceSourceError(
                f"GET /players/{identity}/balance: non-finite balance {value!r}"
            )
        return value

    # --- IdentityDirectoryProtocol ---

    async def resolve_name(self, identity: str) -> str | None:
        try:
            response = await self._client.get(f"/players/{identity}")
        except httpx.HTTPError as exc:
            logger.warning("Name lookup failed for %s: %r", identity, exc)
            return None
        if response.status_code != 200:
            return None
        try:
            name = response.json().get("name")
        except (ValueError, AttributeError):
            return None
        return name if isinstance(name, str) and name else None

    async def find_identity(self, name: str) -> str | None:
        """Case-insensitive lookup of a player uuid by display name."""
        wanted = name.casefold()
        for player in await self._list_players():
            player_name = player.get("name")
            if isinstance(player_name, str) and player_name.casefold() == wanted:
                return str(player["uuid"])
        return None

"""Protocols for the external collaborators the sampler and queries consume.

Implementations may raise on any call; callers isolate failures per identity.
"""

from typing import Protocol


class BalanceSourceProtocol(Protocol):
    async def list_known_identities(self) -> list[str]: ...

    async def get_balance(self, identity: str) -> float: ...


class IdentityDirectoryProtocol(Protocol):
    async def resolve_name(self, identity: str) -> str | None: ...

    async def find_identity(self, name: str) -> str | None: ...

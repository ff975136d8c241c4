"""Port for telling a holder that a claim changed status."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from uuid import UUID

    from anchorid.domain.model import Claim


@runtime_checkable
class ClaimNotifier(Protocol):
    def claim_status_changed(self, identifier: UUID, claim: Claim) -> None: ...

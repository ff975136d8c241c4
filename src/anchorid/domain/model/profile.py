"""Canonical profile record stored per identifier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .enums import EntityKind

if TYPE_CHECKING:
    from datetime import datetime
    from uuid import UUID


@dataclass(frozen=True, slots=True, kw_only=True)
class Profile:
    """Stored (manual) profile state.

    ``manual_same_as`` holds only the links the holder declared; verified claim URLs
    are merged in at read time and never written back. ``founders``/``founding_date``
    apply to organizations, ``affiliations`` to persons; relations are resolver URLs
    of other identifiers and are not checked for existence.
    """

    id: UUID
    kind: EntityKind
    created_at: datetime
    modified_at: datetime
    name: str | None = None
    alternate_names: tuple[str, ...] = ()
    url: str | None = None
    description: str | None = None
    manual_same_as: tuple[str, ...] = ()
    founders: tuple[str, ...] = ()
    founding_date: str | None = None
    affiliations: tuple[str, ...] = ()

    def structural_fields(self) -> tuple[object, ...]:
        """Fields whose change counts as a modification (timestamps excluded)."""

        return (
            self.kind,
            self.name,
            self.alternate_names,
            self.url,
            self.description,
            self.manual_same_as,
            self.founders,
            self.founding_date,
            self.affiliations,
        )

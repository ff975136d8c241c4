"""Stored JSON shapes for profiles and claim ledgers.

Keys are camelCase, the way the records have always been written to the store.
Optional fields and empty lists are left out of the stored JSON.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class RecordModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


class WellKnownProofRecord(RecordModel):
    kind: Literal["well_known"] = "well_known"
    url: str


class DnsTxtProofRecord(RecordModel):
    kind: Literal["dns_txt"] = "dns_txt"
    qname: str
    method: Literal["subdomain", "apex"] = "subdomain"


class GitHubReadmeProofRecord(RecordModel):
    kind: Literal["github_readme"] = "github_readme"
    username: str
    url: str


class ProfilePageProofRecord(RecordModel):
    kind: Literal["profile_page"] = "profile_page"
    url: str


ProofRecord = Annotated[
    WellKnownProofRecord | DnsTxtProofRecord | GitHubReadmeProofRecord | ProfilePageProofRecord,
    Field(discriminator="kind"),
]


class ClaimRecord(RecordModel):
    id: str
    type: Literal["website", "dns", "github", "social"]
    target: str
    url: str
    proof: ProofRecord
    status: Literal["pending", "verified", "failed"] = "pending"
    created_at: datetime
    updated_at: datetime
    last_checked_at: datetime | None = None
    verified_at: datetime | None = None
    fail_reason: str | None = None


class ProfileRecord(RecordModel):
    id: str
    kind: Literal["Person", "Organization"] = Field(default="Person", alias="@type")
    created_at: datetime
    modified_at: datetime
    name: str | None = None
    alternate_names: list[str] | None = Field(default=None, alias="alternateName")
    url: str | None = None
    description: str | None = None
    same_as: list[str] | None = None
    founders: list[str] | None = Field(default=None, alias="founder")
    founding_date: str | None = None
    affiliations: list[str] | None = Field(default=None, alias="affiliation")


claims_ledger_adapter: TypeAdapter[list[ClaimRecord]] = TypeAdapter(list[ClaimRecord])


def dump_ledger(records: list[ClaimRecord]) -> str:
    return claims_ledger_adapter.dump_json(records, by_alias=True, exclude_none=True).decode()


def load_ledger(raw: str) -> list[ClaimRecord]:
    return claims_ledger_adapter.validate_json(raw)

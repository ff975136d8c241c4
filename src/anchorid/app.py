"""Application orchestration entry points."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from logging import getLogger
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from anchorid.adapters.doh import build_doh_lookup
from anchorid.adapters.fetch_guard import build_guarded_fetcher
from anchorid.adapters.http_resilience import ResilientClient
from anchorid.adapters.memory import InMemoryKeyValueStore
from anchorid.adapters.notifications import LoggingClaimNotifier
from anchorid.adapters.repositories import ClaimsLedgerRepository, ProfileRepository
from anchorid.adapters.sqlalchemy import SqlAlchemyKeyValueStore
from anchorid.config import (
    StorageConfig,
    VerificationConfig,
    get_storage_config,
    get_verification_config,
)
from anchorid.domain.claims import draft_claim
from anchorid.domain.errors import ClaimValidationError, ProfileNotFoundError
from anchorid.domain.ledger import find_claim, replace_claim, upsert_claim, verified_urls
from anchorid.domain.model import EntityKind
from anchorid.domain.profile_builder import BuildOptions, build_profile, to_jsonld, utcnow
from anchorid.domain.verification import VerificationEngine, build_verifiers
from anchorid.domain.verification.engine import CACHE_PREFIX

if TYPE_CHECKING:
    from datetime import datetime

    from anchorid.domain.model import Claim, ClaimType, DnsMethod, Profile
    from anchorid.domain.ports import ClaimNotifier, GuardedFetcher, KeyValueStore, TxtLookup
    from anchorid.domain.profile_builder import BuildResult

log = getLogger(__name__)


def parse_identifier(value: UUID | str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(value.strip())
    except (ValueError, AttributeError) as exc:
        raise ClaimValidationError(f"Invalid identifier: {value!r}", reason="invalid_uuid") from exc


class AnchorService:
    """Profiles, claim submission and verification for identifiers in one store."""

    def __init__(
        self,
        *,
        store: KeyValueStore,
        fetcher: GuardedFetcher,
        txt_lookup: TxtLookup,
        config: VerificationConfig | None = None,
        notifier: ClaimNotifier | None = None,
        clock: Callable[[], datetime] = utcnow,
        clients: Sequence[ResilientClient] = (),
    ) -> None:
        self.config = config or VerificationConfig()
        self.store = store
        self.profiles = ProfileRepository(store)
        self.ledger = ClaimsLedgerRepository(store)
        self.engine = VerificationEngine(
            build_verifiers(
                fetcher=fetcher, lookup=txt_lookup, resolver_host=self.config.resolver_host
            ),
            store,
            deadline_seconds=self.config.deadline_seconds,
            verified_cache_ttl_seconds=self.config.verified_cache_ttl_seconds,
            failed_cache_ttl_seconds=self.config.failed_cache_ttl_seconds,
            clock=clock,
        )
        self.notifier = notifier
        self.clock = clock
        self._clients = tuple(clients)

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()

    def _build_options(self) -> BuildOptions:
        return BuildOptions(resolver_base_url=self.config.resolver_base_url, now=self.clock)

    def get_profile(self, identifier: UUID | str) -> Profile:
        uuid = parse_identifier(identifier)
        profile = self.profiles.get(uuid)
        if profile is None:
            raise ProfileNotFoundError(f"No profile for {uuid}")
        return profile

    def create_profile(
        self,
        kind: EntityKind | str = EntityKind.PERSON,
        patch: Mapping[str, object] | None = None,
    ) -> BuildResult:
        identifier = uuid4()
        result = build_profile(
            identifier, None, {**(patch or {}), "kind": kind}, (), self._build_options()
        )
        self.profiles.save(result.profile)
        log.info("Created %s profile %s", result.profile.kind, identifier)
        return result

    def save_profile(self, identifier: UUID | str, patch: Mapping[str, object]) -> BuildResult:
        """Apply ``patch``; the profile is only written when something changed."""

        stored = self.get_profile(identifier)
        result = build_profile(
            stored.id,
            stored,
            patch,
            verified_urls(self.ledger.load(stored.id)),
            self._build_options(),
        )
        if result.changed:
            self.profiles.save(result.profile)
            log.info("Updated profile %s", stored.id)
        else:
            log.debug("Profile %s unchanged", stored.id)
        return result

    def resolve_profile(self, identifier: UUID | str) -> dict[str, object]:
        """Public JSON-LD record with ``sameAs`` merged from verified claims."""

        stored = self.get_profile(identifier)
        result = build_profile(
            stored.id,
            stored,
            None,
            verified_urls(self.ledger.load(stored.id)),
            self._build_options(),
        )
        return to_jsonld(
            result.profile,
            result.effective_same_as,
            resolver_base_url=self.config.resolver_base_url,
        )

    def delete_profile(self, identifier: UUID | str) -> None:
        uuid = parse_identifier(identifier)
        self.profiles.delete(uuid)
        self.ledger.delete(uuid)
        for key in self.store.list(f"{CACHE_PREFIX}:{uuid}:"):
            self.store.delete(key)
        log.info("Deleted profile %s", uuid)

    def submit_claim(
        self,
        identifier: UUID | str,
        claim_type: ClaimType | str,
        target: str,
        *,
        dns_method: DnsMethod | str | None = None,
    ) -> Claim:
        """Add or refresh a pending claim; the same target never creates a duplicate."""

        uuid = self.get_profile(identifier).id
        draft = draft_claim(claim_type, target, dns_method=dns_method)
        now = self.clock()
        claim = self.ledger.update(uuid, lambda claims: upsert_claim(claims, draft, now=now))
        log.info("Claim %s submitted for %s (%s)", claim.id, uuid, claim.status)
        return claim

    def list_claims(self, identifier: UUID | str) -> list[Claim]:
        return self.ledger.load(parse_identifier(identifier))

    async def verify_claim(
        self,
        identifier: UUID | str,
        claim_id: str,
        *,
        recheck: bool = False,
    ) -> Claim:
        """Run verification and record the outcome on the ledger entry."""

        uuid = parse_identifier(identifier)
        claim = find_claim(self.ledger.load(uuid), claim_id)
        outcome = await self.engine.verify(uuid, claim, recheck=recheck)

        def apply(claims: list[Claim]) -> tuple[list[Claim], tuple[Claim, Claim]]:
            current = find_claim(claims, claim_id)
            if current.proof != claim.proof:
                # resubmitted with a different proof while we were fetching
                return claims, (current, current)
            updated = current.with_outcome(
                outcome.status, checked_at=outcome.checked_at, reason=outcome.reason
            )
            return replace_claim(claims, updated), (current, updated)

        previous, updated = self.ledger.update(uuid, apply)
        if self.notifier is not None and previous.status is not updated.status:
            self.notifier.claim_status_changed(uuid, updated)
        return updated


def build_store(config: StorageConfig) -> KeyValueStore:
    if config.backend == "memory":
        return InMemoryKeyValueStore()
    return SqlAlchemyKeyValueStore.from_uri(config.database_uri())


def build_service(
    *,
    verification: VerificationConfig | None = None,
    storage: StorageConfig | None = None,
    store: KeyValueStore | None = None,
) -> AnchorService:
    """Wire the service from configuration (environment by default)."""

    config = verification or get_verification_config()
    page_client = ResilientClient(config.page_resilience)
    doh_client = ResilientClient(config.doh_resilience)
    return AnchorService(
        store=store or build_store(storage or get_storage_config()),
        fetcher=build_guarded_fetcher(config, client=page_client),
        txt_lookup=build_doh_lookup(config, client=doh_client),
        config=config,
        notifier=LoggingClaimNotifier(resolver_base_url=config.resolver_base_url),
        clients=(page_client, doh_client),
    )

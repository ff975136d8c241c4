from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from anchorid.app import AnchorService, build_service
from anchorid.config import configure_logging
from anchorid.domain.diagnostics import describe_failure
from anchorid.domain.errors import AnchorIdError
from anchorid.domain.model import ClaimStatus

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from anchorid.domain.model import Claim

log = logging.getLogger(__name__)

_PROFILE_FIELDS = (
    ("name", "Display name"),
    ("url", "Primary URL"),
    ("description", "Short description"),
    ("alternate_names", "Alternate names (comma separated)"),
    ("same_as", "Manual sameAs URLs (comma separated)"),
    ("founders", "Founder identifiers (organizations only)"),
    ("founding_date", "Founding date YYYY-MM-DD (organizations only)"),
    ("affiliations", "Affiliated identifiers (persons only)"),
)


def _add_profile_fields(parser: argparse.ArgumentParser) -> None:
    for name, help_text in _PROFILE_FIELDS:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, type=str, help=help_text)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Manage AnchorID profiles and claims")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    profile = subparsers.add_parser("profile", help="Profile commands")
    profile_sub = profile.add_subparsers(dest="profile_command", required=True)
    profile_create = profile_sub.add_parser("create", help="Create a profile")
    profile_create.add_argument(
        "--type",
        dest="kind",
        choices=("Person", "Organization"),
        default="Person",
        help="Entity type, fixed at creation (default: %(default)s)",
    )
    _add_profile_fields(profile_create)
    profile_show = profile_sub.add_parser("show", help="Print the resolved JSON-LD profile")
    profile_show.add_argument("identifier", type=str)
    profile_update = profile_sub.add_parser("update", help="Update profile fields")
    profile_update.add_argument("identifier", type=str)
    _add_profile_fields(profile_update)
    profile_delete = profile_sub.add_parser("delete", help="Delete a profile and its claims")
    profile_delete.add_argument("identifier", type=str)

    claim = subparsers.add_parser("claim", help="Claim commands")
    claim_sub = claim.add_subparsers(dest="claim_command", required=True)
    claim_add = claim_sub.add_parser("add", help="Submit a claim")
    claim_add.add_argument("identifier", type=str)
    claim_add.add_argument("type", choices=("website", "dns", "github", "social"))
    claim_add.add_argument("target", type=str, help="URL, domain or @user@instance handle")
    claim_add.add_argument(
        "--dns-method",
        choices=("subdomain", "apex"),
        help="Where the DNS TXT record lives (default: subdomain)",
    )
    claim_verify = claim_sub.add_parser("verify", help="Verify a claim now")
    claim_verify.add_argument("identifier", type=str)
    claim_verify.add_argument("claim_id", type=str)
    claim_verify.add_argument(
        "--recheck",
        action="store_true",
        help="Ignore a cached verification decision",
    )
    claim_list = claim_sub.add_parser("list", help="List claims")
    claim_list.add_argument("identifier", type=str)

    return parser.parse_args(list(argv))


def _profile_patch(args: argparse.Namespace) -> dict[str, object]:
    return {
        name: getattr(args, name) for name, _ in _PROFILE_FIELDS if getattr(args, name) is not None
    }


def _claim_line(claim: Claim) -> str:
    line = f"{claim.id}\t{claim.status}\t{claim.url}"
    if claim.status is ClaimStatus.FAILED:
        line = f"{line}\t{describe_failure(claim.fail_reason).message}"
    return line


async def _dispatch(service: AnchorService, args: argparse.Namespace) -> int:  # noqa: C901, PLR0911
    command = (args.command, getattr(args, f"{args.command}_command", None))
    if command == ("profile", "create"):
        result = service.create_profile(args.kind, _profile_patch(args))
        print(result.profile.id)  # noqa: T201
        return 0
    if command == ("profile", "show"):
        print(json.dumps(service.resolve_profile(args.identifier), indent=2))  # noqa: T201
        return 0
    if command == ("profile", "update"):
        result = service.save_profile(args.identifier, _profile_patch(args))
        log.info("Profile %s", "updated" if result.changed else "unchanged")
        return 0
    if command == ("profile", "delete"):
        service.delete_profile(args.identifier)
        return 0
    if command == ("claim", "add"):
        claim = service.submit_claim(
            args.identifier, args.type, args.target, dns_method=args.dns_method
        )
        print(_claim_line(claim))  # noqa: T201
        return 0
    if command == ("claim", "verify"):
        claim = await service.verify_claim(args.identifier, args.claim_id, recheck=args.recheck)
        print(_claim_line(claim))  # noqa: T201
        return 0 if claim.is_verified else 3
    if command == ("claim", "list"):
        for claim in service.list_claims(args.identifier):
            print(_claim_line(claim))  # noqa: T201
        return 0
    raise ValueError(f"Unsupported command: {' '.join(part for part in command if part)}")


async def _run(args: argparse.Namespace) -> int:
    service = build_service()
    try:
        return await _dispatch(service, args)
    finally:
        await service.aclose()


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    load_dotenv()
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(level=logging.DEBUG if parsed_args.verbose else logging.INFO)

    try:
        code = asyncio.run(_run(parsed_args))
    except AnchorIdError as exc:
        log.error("%s", exc)  # noqa: TRY400
        sys.exit(2)
    except Exception:
        log.exception("Fatal error")
        sys.exit(1)
    sys.exit(code)


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


if __name__ == "__main__":
    signal(SIGINT, sigint_handler)
    main()

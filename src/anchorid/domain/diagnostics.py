"""Human-readable explanations for verification failure reasons."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True, slots=True)
class FailureInfo:
    message: str
    hint: str | None = None
    doc_link: str | None = None

    def as_text(self, *, base_url: str = "https://anchorid.net") -> str:
        parts = [self.message]
        if self.hint:
            parts.append(self.hint)
        if self.doc_link:
            parts.append(f"Documentation: {base_url.rstrip('/')}{self.doc_link}")
        return "\n\n".join(parts)


_TRY_AGAIN: Final[str] = "This is usually temporary; try again in a few minutes."

_DNS_STATUS: Final[dict[str, FailureInfo]] = {
    "1": FailureInfo(
        "DNS query format error",
        "The domain name may be invalid. Check for typos or invalid characters.",
    ),
    "2": FailureInfo("DNS server failure", f"The DNS server encountered an error. {_TRY_AGAIN}"),
    "3": FailureInfo(
        "Domain does not exist (NXDOMAIN)",
        "Check the spelling and make sure the record is published on the right name.",
        "/proofs#dns",
    ),
    "4": FailureInfo("DNS query not supported", "Contact your DNS provider."),
    "5": FailureInfo("DNS query refused", "Check your DNS provider's configuration."),
}

_EXACT: Final[dict[str, FailureInfo]] = {
    "proof_not_found": FailureInfo(
        "Proof not found",
        "The resource was fetched but does not contain your AnchorID. "
        "Check that you copied the correct resolver URL or UUID.",
        "/proofs",
    ),
    "no_txt_records": FailureInfo(
        "No TXT records found",
        "The TXT record has not been added yet or has not propagated. "
        "Wait 5-10 minutes after adding it, then recheck.",
        "/proofs#dns",
    ),
    "timeout": FailureInfo("Request timed out", f"The server took too long to respond. {_TRY_AGAIN}"),
    "deadline_exceeded": FailureInfo(
        "Verification took too long", f"The proof source did not answer in time. {_TRY_AGAIN}"
    ),
    "too_many_redirects": FailureInfo(
        "Too many redirects", "Serve the proof directly or with at most three redirects."
    ),
    "doh_invalid_response": FailureInfo("DNS lookup service returned an unreadable answer", _TRY_AGAIN),
    "invalid_target": FailureInfo(
        "Invalid claim target", "Check the URL, domain or handle you submitted."
    ),
    "invalid_handle": FailureInfo(
        "Invalid handle", "Use the full form including the instance, e.g. @user@instance.social."
    ),
    "invalid_proof_kind": FailureInfo(
        "Invalid proof configuration", "Resubmit the claim to rebuild its proof."
    ),
    "unknown_claim_type": FailureInfo(
        "Unsupported claim type", "Use 'website', 'dns', 'github' or 'social'."
    ),
}


def describe_failure(reason: str | None) -> FailureInfo:
    """Map a stored ``fail_reason`` code to a message and troubleshooting hint."""

    if not reason:
        return FailureInfo("Unknown error", "An unexpected error occurred. Please try again.")

    code, _, detail = reason.partition(":")
    if reason in _EXACT:
        return _EXACT[reason]
    if code == "dns_status":
        return _DNS_STATUS.get(
            detail,
            FailureInfo(f"DNS error (status {detail})", "An unexpected DNS error occurred."),
        )
    if code == "doh_status":
        return FailureInfo(f"DNS lookup service returned HTTP {detail}", _TRY_AGAIN)
    if code == "fetch_failed":
        if detail == "404":
            return FailureInfo(
                "Proof file not found (HTTP 404)",
                "Nothing is published at the expected location yet.",
                "/proofs",
            )
        if detail == "403":
            return FailureInfo(
                "Access denied (HTTP 403)",
                "The web server blocks access to the proof file. Check permissions and rules.",
                "/proofs#website",
            )
        if detail.startswith("5"):
            return FailureInfo(f"Server error (HTTP {detail})", _TRY_AGAIN)
        return FailureInfo(f"HTTP error {detail}", "Check that the URL is correct.")
    if code == "fetch_error":
        return FailureInfo("Network error", f"Could not connect: {detail}. {_TRY_AGAIN}")
    if code == "blocked":
        return FailureInfo(
            "Target not allowed",
            "Proofs must be served over HTTPS from a public address.",
        )
    if code == "verify_error":
        return FailureInfo("Verification error", f"An unexpected error occurred: {detail}")
    return FailureInfo(reason, "An unexpected error occurred. Please try again.")

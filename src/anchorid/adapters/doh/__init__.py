"""DNS-over-HTTPS adapter."""

from __future__ import annotations

from .client import DohTxtLookup, build_doh_lookup
from .schema import DohAnswer, DohResponse

__all__ = ["DohAnswer", "DohResponse", "DohTxtLookup", "build_doh_lookup"]

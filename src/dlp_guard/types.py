"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum


class Category(str, Enum):
    """PII categories, in masking order."""
    PHONE = "phone"
    EMAIL = "email"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    SSN = "ssn"
    CREDIT_CARD = "creditCard"
    BUSINESS_NUMBER = "businessNumber"
    BANK_ACCOUNT = "bankAccount"
    POSTAL_CODE = "postalCode"
    MAC_ADDRESS = "macAddress"
    ADDRESS = "address"


class Status(str, Enum):
    SAFE = "safe"
    DANGER = "danger"


class Band(str, Enum):
    """Risk band of a single neighbour similarity."""
    SAFE = "safe"
    DANGER = "danger"
    CRITICAL = "critical"


class Action(str, Enum):
    ALLOW = "ALLOW"
    HOLD_FOR_REVIEW = "HOLD_FOR_REVIEW"
    BLOCK = "BLOCK"


def empty_detected() -> dict[str, list[str]]:
    """Detection map with every category present and empty."""
    return {c.value: [] for c in Category}


@dataclass(slots=True)
class AnalysisResult:
    """Result of pattern analysis on one text."""
    masked_text: str
    detected: dict[str, list[str]] = field(default_factory=empty_detected)
    status: Status = Status.SAFE

    def to_dict(self) -> dict:
        return {
            "result": self.masked_text,
            "detected": {k: list(v) for k, v in self.detected.items()},
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class NeighborMatch:
    """A corpus document close to the query."""
    file: str
    band: Band
    similarity: float      # inner product of normalized vectors

    def to_dict(self) -> dict:
        return {"file": self.file, "similarity": self.band.value, "score": self.similarity}


@dataclass(slots=True)
class DecisionResult:
    """Enforcement action plus the risky neighbours behind it."""
    action: Action
    matches: list[NeighborMatch] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "action": self.action.value,
            "matches": [m.to_dict() for m in self.matches],
        }

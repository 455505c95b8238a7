"""
Read-only Query Guard

Static, pre-execution classifier for Cypher. It never parses the query:
it lower-cases and trims it, then applies three rule tables in order.

  1. Deny-list:   any mutating/schema token as a substring → REJECTED
  2. Procedures:  a ``CALL x.y`` target must start with an allowed prefix
  3. Start words: the query must begin with a read-only keyword

Substring matching over-rejects: a read query that merely
mentions ``set`` or ``create`` in a literal is rejected too.  Under-rejection
is possible for queries crafted to slip past the heuristics (comments,
unusual whitespace); the rule tables are configuration so coverage can be
reviewed and extended without touching callers.
"""

import enum
import re
from dataclasses import dataclass, field
from typing import Protocol


FORBIDDEN_KEYWORDS: tuple[str, ...] = (
    "create",
    "delete",
    "detach delete",
    "merge",
    "set",
    "remove",
    "drop",
    "alter",
    "constraint",
    "index",
    "call {",
    "load csv",
    "foreach",
    "with create",
    "with merge",
    "with delete",
    "with set",
    "with remove",
)

# Schema/meta introspection plus the analytics library namespaces
ALLOWED_PROCEDURE_PREFIXES: tuple[str, ...] = (
    "db.schema",
    "db.labels",
    "db.relationshipTypes",
    "db.propertyKeys",
    "apoc.meta",
    "algo.",
    "gds.",
)

ALLOWED_START_KEYWORDS: tuple[str, ...] = (
    "match",
    "return",
    "with",
    "unwind",
    "call db.schema",
    "call db.labels",
    "call db.relationshipTypes",
    "call db.propertyKeys",
    "call apoc.meta",
    "show",
)

CALL_MARKER = "call "
_PROCEDURE_PATTERN = re.compile(r"call\s+([a-z0-9_.]+)")


class Verdict(str, enum.Enum):
    SAFE = "safe"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Classification:
    """Outcome of a single guard call; ``reason`` is set only when rejected."""

    verdict: Verdict
    reason: str | None = None

    @property
    def is_safe(self) -> bool:
        return self.verdict is Verdict.SAFE

    @classmethod
    def safe(cls) -> "Classification":
        return cls(Verdict.SAFE)

    @classmethod
    def rejected(cls, reason: str) -> "Classification":
        return cls(Verdict.REJECTED, reason)


def _lowered(values) -> tuple[str, ...]:
    return tuple(v.lower() for v in values)


@dataclass(frozen=True)
class GuardRules:
    """Rule tables used by ReadOnlyQueryGuard.

    Entries are lower-cased on construction since queries are compared
    in lower case.
    """

    forbidden_keywords: tuple[str, ...] = FORBIDDEN_KEYWORDS
    allowed_procedures: tuple[str, ...] = ALLOWED_PROCEDURE_PREFIXES
    allowed_start_keywords: tuple[str, ...] = ALLOWED_START_KEYWORDS

    def __post_init__(self) -> None:
        object.__setattr__(self, "forbidden_keywords", _lowered(self.forbidden_keywords))
        object.__setattr__(self, "allowed_procedures", _lowered(self.allowed_procedures))
        object.__setattr__(self, "allowed_start_keywords", _lowered(self.allowed_start_keywords))

    def extended(
        self,
        forbidden_keywords: list[str] | None = None,
        allowed_procedures: list[str] | None = None,
    ) -> "GuardRules":
        """Return a copy with extra deny tokens and procedure prefixes.

        Extensions only add entries; canonical ones are never removed.
        """
        return GuardRules(
            forbidden_keywords=self.forbidden_keywords + tuple(forbidden_keywords or ()),
            allowed_procedures=self.allowed_procedures + tuple(allowed_procedures or ()),
            allowed_start_keywords=self.allowed_start_keywords
            + tuple(f"call {p.lower()}" for p in allowed_procedures or ()),
        )


class QueryGuard(Protocol):
    """Anything able to classify a raw query as safe or rejected."""

    def classify(self, query: str) -> Classification: ...


@dataclass(frozen=True)
class ReadOnlyQueryGuard:
    """Blocklist/allowlist hybrid guard. Pure and deterministic."""

    rules: GuardRules = field(default_factory=GuardRules)

    def classify(self, query: str) -> Classification:
        normalized = query.lower().strip()

        for keyword in self.rules.forbidden_keywords:
            if keyword in normalized:
                return Classification.rejected(f"forbidden keyword '{keyword}'")

        if CALL_MARKER in normalized:
            match = _PROCEDURE_PATTERN.search(normalized)
            if match is None:
                return Classification.rejected("malformed procedure call")
            procedure = match.group(1)
            if not procedure.startswith(self.rules.allowed_procedures):
                return Classification.rejected(f"procedure '{procedure}' is not allowed")

        if not normalized.startswith(self.rules.allowed_start_keywords):
            return Classification.rejected("query does not start with a read-only clause")

        return Classification.safe()

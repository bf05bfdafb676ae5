"""Match bank transaction references to members."""

import logging
from typing import Mapping, Optional

from parishledger.database.base import Database
from parishledger.domain.entities import Ambiguous, Matched, MatchResult, Unmatched
from parishledger.domain.member import normalize_bank_reference

log = logging.getLogger(__name__)

EMPTY_REFERENCE = "[EMPTY]"


class ReferenceMatcher:
    """Resolve a raw transaction reference to a member.

    Matching is case-insensitive on whitespace-normalised text. An exact
    match on a member's bank reference code wins; otherwise the reference is
    searched for every code, because banks often add free text around the
    reference a member configured. More than one code found that way is
    reported as ``Ambiguous`` and never resolved automatically.
    """

    def __init__(self, codes: Mapping[str, int]):
        """Initialize matcher.

        Args:
            codes: Mapping of bank reference code to member ID
        """
        self._codes: dict[str, int] = {}
        for code, member_id in codes.items():
            key = normalize_bank_reference(code)
            if key:
                self._codes[key] = member_id

    @classmethod
    def from_database(cls, db: Database) -> "ReferenceMatcher":
        """Build a matcher from the member register's current codes."""
        members = db.list_members_with_bank_reference()
        return cls({m.bank_reference: m.id for m in members if m.bank_reference})

    def __len__(self) -> int:
        return len(self._codes)

    def match(self, reference: Optional[str]) -> MatchResult:
        """Match a raw reference.

        Returns:
            Matched(member_id), Unmatched(raw_reference) or
            Ambiguous(raw_reference, candidate_ids)
        """
        raw = (reference or "").strip()
        normalized = normalize_bank_reference(raw)
        if not normalized:
            return Unmatched(raw)

        member_id = self._codes.get(normalized)
        if member_id is not None:
            return Matched(member_id)

        candidates = sorted(
            {member_id for code, member_id in self._codes.items() if code in normalized}
        )
        if len(candidates) == 1:
            return Matched(candidates[0])
        if len(candidates) > 1:
            log.warning("Reference '%s' matches %d members: %s", raw, len(candidates), candidates)
            return Ambiguous(raw, tuple(candidates))
        return Unmatched(raw)


def display_reference(raw_reference: str) -> str:
    """Reference as shown in follow-up lists; blank references are marked."""
    return raw_reference if raw_reference else EMPTY_REFERENCE

"""Vote tallies and advisory consensus suggestions."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from greenlight.domain.models import APPROVAL, LONG_LIST, Performer, TabDefinition, User

ConsensusKind = Literal["advance", "greenlight", "return_to_long_list", "hold"]


@dataclass(frozen=True)
class VoteTally:
    voted_users: int
    yes_votes: int
    no_votes: int
    maybe_votes: int
    total_users: int

    @property
    def everyone_voted(self) -> bool:
        return self.total_users > 0 and self.voted_users == self.total_users


@dataclass(frozen=True)
class ConsensusAction:
    """Suggested next step for a performer; never applied automatically."""

    kind: ConsensusKind
    target_list_key: str | None
    reason: str


def tally(performer: Performer, users: Sequence[User]) -> VoteTally:
    """Count votes cast by known users only."""
    yes_votes = no_votes = maybe_votes = 0
    for user in users:
        vote = performer.user_votes.get(user.id)
        if vote == "yes":
            yes_votes += 1
        elif vote == "no":
            no_votes += 1
        elif vote == "maybe":
            maybe_votes += 1
    return VoteTally(
        voted_users=yes_votes + no_votes + maybe_votes,
        yes_votes=yes_votes,
        no_votes=no_votes,
        maybe_votes=maybe_votes,
        total_users=len(users),
    )


def is_unanimous_yes(performer: Performer, users: Sequence[User]) -> bool:
    result = tally(performer, users)
    return result.total_users > 0 and result.yes_votes == result.total_users


def _next_tab_key(current_key: str, tab_definitions: Sequence[TabDefinition]) -> str:
    keys = [definition.key for definition in tab_definitions]
    if current_key not in keys:
        return APPROVAL
    index = keys.index(current_key)
    return keys[index + 1] if index + 1 < len(keys) else APPROVAL


def suggest_consensus_action(
    performer: Performer,
    users: Sequence[User],
    tab_definitions: Sequence[TabDefinition],
) -> ConsensusAction | None:
    """Return the advisory action once every user has voted, else ``None``."""
    result = tally(performer, users)
    if not result.everyone_voted:
        return None
    current_key = performer.current_list_key
    if result.yes_votes == result.total_users:
        if current_key == APPROVAL:
            return ConsensusAction(
                kind="greenlight",
                target_list_key=None,
                reason="Unanimous yes on the approval list",
            )
        return ConsensusAction(
            kind="advance",
            target_list_key=_next_tab_key(current_key, tab_definitions),
            reason="Unanimous yes",
        )
    if result.no_votes == result.total_users:
        if current_key == LONG_LIST:
            return ConsensusAction(kind="hold", target_list_key=None, reason="Unanimous no")
        return ConsensusAction(
            kind="return_to_long_list",
            target_list_key=LONG_LIST,
            reason="Unanimous no",
        )
    return ConsensusAction(kind="hold", target_list_key=None, reason="Mixed votes")


def format_vote_message(
    voter_name: str | None,
    vote: str,
    performer_name: str,
    character_name: str,
) -> str:
    return (
        f"{voter_name or 'Someone'} voted '{vote.capitalize()}' "
        f"on {performer_name} for {character_name}"
    )

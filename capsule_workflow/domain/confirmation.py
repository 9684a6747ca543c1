"""Bilateral confirmation tracking.

Pure functions over an item's per-party flags for its current stage. This is
the only place that decides which slot is "mine" and which is "theirs".
"""

from dataclasses import dataclass

from capsule_workflow.domain.items import (
    PendingDecision,
    Planning,
    RelationshipItem,
    Resolving,
)
from capsule_workflow.domain.parties import Party, Vote


@dataclass(frozen=True)
class PartyStatus:
    """How an item looks from one party's side."""

    my_flag: object
    their_flag: object
    both_approved: bool
    has_disagreement: bool
    waiting_on_partner: bool


def _stage_flags(item: RelationshipItem):
    """Return the stage-specific PartyPair of flags, or None outside flagged stages."""
    state = item.state
    if isinstance(state, Planning):
        return state.votes
    if isinstance(state, Resolving):
        return state.perspectives
    if isinstance(state, PendingDecision):
        return state.confirmations
    return None


def my_flag(item: RelationshipItem, party: Party):
    """Acting party's flag for the current stage.

    Vote (or None) in planning, Perspective (or None) in resolving,
    confirmation bool in pending_decision, None in any other stage.
    """
    flags = _stage_flags(item)
    return flags.mine(party) if flags is not None else None


def their_flag(item: RelationshipItem, party: Party):
    """The other party's flag for the current stage (see my_flag)."""
    flags = _stage_flags(item)
    return flags.theirs(party) if flags is not None else None


def both_approved(item: RelationshipItem) -> bool:
    """Stage-dependent agreement.

    planning: both votes are APPROVE. pending_decision: both confirmed.
    Every other stage: False.
    """
    state = item.state
    if isinstance(state, Planning):
        return state.votes.both(lambda v: v == Vote.APPROVE)
    if isinstance(state, PendingDecision):
        return state.confirmations.both(lambda confirmed: confirmed is True)
    return False


def has_disagreement(item: RelationshipItem) -> bool:
    """Planning only: one party approved and the other rejected.

    An unset vote is neither approval nor rejection. Disagreement never
    moves the item by itself; a party has to request resolution.
    """
    state = item.state
    if not isinstance(state, Planning):
        return False
    return {state.votes.a, state.votes.b} == {Vote.APPROVE, Vote.REJECT}


def perspectives_complete(item: RelationshipItem) -> bool:
    """Resolving only: both parties submitted all four perspective fields."""
    state = item.state
    if not isinstance(state, Resolving):
        return False
    return state.perspectives.both(lambda p: p is not None and p.is_complete())


def party_status(item: RelationshipItem, party: Party) -> PartyStatus:
    """Summarize the item from *party*'s point of view."""
    mine = my_flag(item, party)
    theirs = their_flag(item, party)
    agreed = both_approved(item)
    disagreement = has_disagreement(item)

    if isinstance(item.state, (Planning, Resolving)):
        waiting = mine is not None and theirs is None
    elif isinstance(item.state, PendingDecision):
        waiting = mine is True and theirs is not True
    else:
        waiting = False

    return PartyStatus(
        my_flag=mine,
        their_flag=theirs,
        both_approved=agreed,
        has_disagreement=disagreement,
        waiting_on_partner=waiting,
    )

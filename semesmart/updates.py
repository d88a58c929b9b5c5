"""
Pure Updates over the Family Document

Each function takes a UserData and returns a NEW UserData with exactly one
collection or field changed. Everything else is shared with the input.

Nothing here touches storage. The session applies these functions,
persists the result, and adopts whatever the store echoes back. Because
they are pure, the session can re-apply the same update to a fresher
document after a write conflict.
"""

from semesmart.models.family import (
    Card,
    ChallengeStatus,
    FamilyProfile,
    Goal,
    Member,
    Transaction,
    UserData,
)


class UnknownEntityError(LookupError):
    """An edit referenced an id that is not in the collection."""

    def __init__(self, collection: str, entity_id: str):
        self.collection = collection
        self.entity_id = entity_id
        super().__init__(f"No {collection} with id {entity_id!r}")


def _replace_by_id(records: list, record, collection: str) -> list:
    if not any(existing.id == record.id for existing in records):
        raise UnknownEntityError(collection, record.id)
    return [record if existing.id == record.id else existing for existing in records]


# Add entity

def prepend_transaction(data: UserData, transaction: Transaction) -> UserData:
    """Newest first."""
    return data.model_copy(update={"transactions": [transaction, *data.transactions]})


def append_member(data: UserData, member: Member) -> UserData:
    return data.model_copy(update={"members": [*data.members, member]})


def append_goal(data: UserData, goal: Goal) -> UserData:
    return data.model_copy(update={"goals": [*data.goals, goal]})


def append_card(data: UserData, card: Card) -> UserData:
    return data.model_copy(update={"cards": [*data.cards, card]})


# Edit entity (positions stay stable)

def replace_member(data: UserData, member: Member) -> UserData:
    return data.model_copy(update={"members": _replace_by_id(data.members, member, "member")})


def replace_goal(data: UserData, goal: Goal) -> UserData:
    return data.model_copy(update={"goals": _replace_by_id(data.goals, goal, "goal")})


# Scalar fields

def set_family_profile(data: UserData, profile: FamilyProfile) -> UserData:
    return data.model_copy(update={"family_profile": profile})


def mark_onboarding_seen(data: UserData) -> UserData:
    """Monotonic: once seen, always seen."""
    if data.has_seen_onboarding:
        return data
    return data.model_copy(update={"has_seen_onboarding": True})


# Challenge transitions

def set_challenge_status(data: UserData, challenge_id: str, status: ChallengeStatus) -> UserData:
    """Replace only the status of the matching challenge."""
    challenge = data.find_challenge(challenge_id)
    if challenge is None:
        raise UnknownEntityError("challenge", challenge_id)
    updated = challenge.model_copy(update={"status": status})
    return data.model_copy(
        update={"challenges": _replace_by_id(data.challenges, updated, "challenge")}
    )


def advance_challenge(data: UserData, challenge_id: str) -> UserData:
    """
    Move a challenge one step forward.

    A completed challenge is left as is (the same object is returned).
    """
    challenge = data.find_challenge(challenge_id)
    if challenge is None:
        raise UnknownEntityError("challenge", challenge_id)
    next_status = challenge.status.next_status()
    if next_status is None:
        return data
    return set_challenge_status(data, challenge_id, next_status)

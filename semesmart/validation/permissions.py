"""
Edit Permissions

Who may change whose record:
- Administrators edit anyone
- Everyone edits themselves
- A spouse (Cônjuge) edits the children (members titled Filho/Filha)

The family profile (name, picture) is administrator-only.
"""

from typing import Optional

from semesmart.models.family import Member, MemberRole

CHILD_TITLES = frozenset({"Filho", "Filha"})


class PermissionDeniedError(Exception):
    """The acting member may not perform this change."""

    def __init__(self, action: str, acting_member_id: Optional[str], target_id: Optional[str] = None):
        self.action = action
        self.acting_member_id = acting_member_id
        self.target_id = target_id
        super().__init__(
            f"Member {acting_member_id!r} may not {action}"
            + (f" on {target_id!r}" if target_id else "")
        )

    @property
    def user_message(self) -> str:
        return "Você não tem permissão para fazer esta alteração."


def can_edit(acting: Optional[Member], target: Member) -> bool:
    if acting is None:
        return False
    if acting.role is MemberRole.ADMINISTRADOR:
        return True
    if acting.id == target.id:
        return True
    return acting.role is MemberRole.CONJUGE and target.title in CHILD_TITLES


def can_edit_family_profile(acting: Optional[Member]) -> bool:
    return acting is not None and acting.role is MemberRole.ADMINISTRADOR

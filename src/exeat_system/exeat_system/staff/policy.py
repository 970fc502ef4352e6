from __future__ import annotations

from typing import Iterable

from ..core.enums import ApproverRole
from ..core.exceptions import AuthorizationError
from ..exeats.model import Actor
from .directory import StaffDirectory


class AuthorizationPolicy:
    """Decides whether an actor may act under a role.

    Privileged identities come from configuration and may act under any
    role; everyone else must hold the role in the staff directory. Parents
    carry no staff identity and are vouched for by the consent link.
    """

    def __init__(self, directory: StaffDirectory, *, privileged_staff_ids: Iterable[int] = ()):
        self._directory = directory
        self._privileged = frozenset(int(i) for i in privileged_staff_ids)

    def is_privileged(self, staff_id: int | None) -> bool:
        return staff_id is not None and int(staff_id) in self._privileged

    def holds(self, staff_id: int | None, *roles: ApproverRole) -> bool:
        if self.is_privileged(staff_id):
            return True
        if staff_id is None:
            return False
        return bool(self._directory.roles_for(int(staff_id)) & set(roles))

    def ensure_can_act(self, actor: Actor) -> None:
        if actor.role == ApproverRole.PARENT:
            return
        if actor.staff_id is None:
            raise AuthorizationError(f"Role '{actor.role.value}' requires a staff identity")
        if not self.holds(actor.staff_id, actor.role):
            raise AuthorizationError(f"Staff #{actor.staff_id} does not hold role '{actor.role.value}'")

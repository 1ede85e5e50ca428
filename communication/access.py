"""
Channel access control.

Pure predicates over an actor and an immutable channel snapshot. Nothing in
this module touches the database; callers take a snapshot of the channel
(``Channel.snapshot()``) and pass it in.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from accounts.roles import Role, role_of

from .exceptions import NotFound

# Visible to every authenticated actor regardless of membership or role gates
GLOBAL_CHANNELS = frozenset({"General", "Random"})

PUBLIC = "public"
PRIVATE = "private"
ANNOUNCEMENT = "announcement"


@dataclass(frozen=True)
class ChannelSnapshot:
    """The parts of a channel the access rules read."""

    name: str
    channel_type: str = PUBLIC
    member_ids: FrozenSet[str] = field(default_factory=frozenset)
    allowed_roles: FrozenSet[str] = field(default_factory=frozenset)
    posting_roles: FrozenSet[str] = field(default_factory=frozenset)

    def has_member(self, actor) -> bool:
        actor_id = getattr(actor, "id", None)
        return actor_id is not None and str(actor_id) in self.member_ids

    @property
    def is_global(self) -> bool:
        return self.name in GLOBAL_CHANNELS


@dataclass(frozen=True)
class AccessDecision:
    can_view: bool
    can_post: bool


def can_view(actor, channel: ChannelSnapshot) -> bool:
    role = role_of(actor)
    return (
        role == Role.SUPER_ADMIN
        or channel.has_member(actor)
        or channel.is_global
        or role.value in channel.allowed_roles
    )


def can_post(actor, channel: ChannelSnapshot) -> bool:
    role = role_of(actor)
    if role.has_admin_override:
        return True
    if channel.channel_type == PRIVATE:
        return channel.has_member(actor)
    return role.value in channel.posting_roles


def resolve(actor, channel: Optional[ChannelSnapshot]) -> AccessDecision:
    """Both predicates at once; an unresolved channel is NotFound."""
    if channel is None:
        raise NotFound("Channel not found")
    return AccessDecision(
        can_view=can_view(actor, channel),
        can_post=can_post(actor, channel),
    )

"""Role and permission queries over a room snapshot.

All functions are pure and total: they read the snapshot, never raise for
well-formed input, and return the same answer for the same arguments.
"""

from sideroom.schemas import Room, RoomRole

ROOM_NAME_MIN_LENGTH = 3
ROOM_NAME_MAX_LENGTH = 50
ROOM_PASSWORD_MIN_LENGTH = 4
ROOM_PASSWORD_MAX_LENGTH = 20


def is_owner(room: Room, user_id: str | None) -> bool:
    return bool(user_id) and room.owner_id == user_id


def is_member(room: Room, user_id: str | None) -> bool:
    return bool(user_id) and any(m.user_id == user_id for m in room.members)


def is_viewer(room: Room, user_id: str | None) -> bool:
    return bool(user_id) and any(v.user_id == user_id for v in room.viewers)


def role_of(room: Room, user_id: str | None) -> RoomRole | None:
    """Resolve the single role a user holds in the room.

    Precedence is owner > member > viewer, so a snapshot that lists the same
    user in more than one place still yields one deterministic role.
    """
    if is_owner(room, user_id):
        return RoomRole.OWNER
    if is_member(room, user_id):
        return RoomRole.MEMBER
    if is_viewer(room, user_id):
        return RoomRole.VIEWER
    return None


def has_access(room: Room, user_id: str | None) -> bool:
    return role_of(room, user_id) is not None


def can_send_messages(room: Room, user_id: str | None) -> bool:
    # Viewers are read-only
    return role_of(room, user_id) in (RoomRole.OWNER, RoomRole.MEMBER)


def can_manage_room(room: Room, user_id: str | None) -> bool:
    return is_owner(room, user_id)


def can_start_stream(room: Room, user_id: str | None) -> bool:
    return is_owner(room, user_id)


def can_view_stream_key(room: Room, user_id: str | None) -> bool:
    return is_owner(room, user_id)


def is_room_full(room: Room) -> bool:
    """True when the member list reached `max_members`. Rooms without a cap are never full."""
    if not room.max_members or room.max_members <= 0:
        return False
    return len(room.members) >= room.max_members


def validate_room_name(name: str | None) -> str | None:
    """Return a reason string when the name is invalid, else None."""
    trimmed = (name or "").strip()
    if not trimmed:
        return "Room name is required"
    if len(trimmed) < ROOM_NAME_MIN_LENGTH:
        return f"Room name must be at least {ROOM_NAME_MIN_LENGTH} characters"
    if len(trimmed) > ROOM_NAME_MAX_LENGTH:
        return f"Room name must be at most {ROOM_NAME_MAX_LENGTH} characters"
    return None


def validate_room_password(password: str | None) -> str | None:
    """Return a reason string when the password is invalid, else None.

    An empty password means the room has no password.
    """
    if not password:
        return None
    if len(password) < ROOM_PASSWORD_MIN_LENGTH:
        return f"Password must be at least {ROOM_PASSWORD_MIN_LENGTH} characters"
    if len(password) > ROOM_PASSWORD_MAX_LENGTH:
        return f"Password must be at most {ROOM_PASSWORD_MAX_LENGTH} characters"
    return None


def validate_room_settings(
    name: str | None, *, is_private: bool = False, password: str | None = None
) -> list[str]:
    """Collect every reason the room settings would be rejected, in form order."""
    errors: list[str] = []
    name_error = validate_room_name(name)
    if name_error:
        errors.append(name_error)
    if is_private and not (password or "").strip():
        errors.append("Password is required for private rooms")
    else:
        password_error = validate_room_password(password)
        if password_error:
            errors.append(password_error)
    return errors

from .access_domain import (
    can_manage_room,
    can_send_messages,
    can_start_stream,
    can_view_stream_key,
    has_access,
    is_member,
    is_owner,
    is_room_full,
    is_viewer,
    role_of,
    validate_room_name,
    validate_room_password,
    validate_room_settings,
)

__all__ = [
    "can_manage_room",
    "can_send_messages",
    "can_start_stream",
    "can_view_stream_key",
    "has_access",
    "is_member",
    "is_owner",
    "is_room_full",
    "is_viewer",
    "role_of",
    "validate_room_name",
    "validate_room_password",
    "validate_room_settings",
]

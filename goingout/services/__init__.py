"""Convenience exports for service layer."""
from .auth_service import authenticate_user, create_access_token, decode_access_token, get_current_user, register_user
from .block_service import block_user, get_blocked_users, hidden_user_ids, is_user_blocked, unblock_user
from .cleanup_service import CleanupError, CleanupSummary, run_cleanup
from .comment_service import add_comment, delete_comment, list_comments
from .event_service import (
    check_event_join_status,
    create_event,
    delete_event,
    get_event_or_404,
    join_event,
    list_upcoming_events,
    update_event,
)
from .friendship_service import (
    accept_friend_request,
    add_friend,
    cancel_friend_request,
    check_friendship,
    decline_friend_request,
    friends_snapshot,
    get_friends,
    list_friend_requests,
    remove_friend,
    send_friend_request,
    serialize_request,
    sync_accepted_requests,
)
from .group_chat_service import list_messages, send_media_message, send_message
from .group_location_service import list_locations, share_location, stop_sharing_location
from .group_photo_service import add_photo, add_to_album, add_video, list_photos, upload_to_album
from .group_poll_service import create_poll, delete_poll, list_polls, vote_on_poll
from .group_service import (
    accept_group_invitation,
    add_member_by_username,
    create_group,
    decline_group_invitation,
    delete_group,
    get_group_or_404,
    is_group_active,
    list_user_groups,
    remove_member,
    require_member,
    send_group_invitation,
    update_group_picture,
)
from .notification_service import (
    NotificationType,
    count_unread_notifications,
    create_notification,
    delete_notification,
    delete_old_notifications,
    list_notifications,
    mark_all_read,
    mark_notification_read,
)
from .post_service import (
    create_post,
    delete_expired_posts,
    delete_post,
    get_feed,
    get_posts_by_location,
    get_visible_post,
    liked_post_ids,
    set_post_like_state,
)
from .push_service import clear_push_token, register_push_token
from .report_service import report_post, report_user
from .storage_service import StorageConfigurationError, StorageUploadError, upload_or_raise_http
from .user_service import (
    get_user_by_username_or_404,
    get_users_by_keys,
    relationship_status,
    reload_user,
    search_users,
    update_profile,
    user_key,
)
from .vote_service import get_user_vote, get_vote_counts, vote_for_option

__all__ = [
    "authenticate_user",
    "register_user",
    "create_access_token",
    "decode_access_token",
    "get_current_user",
    "block_user",
    "unblock_user",
    "get_blocked_users",
    "is_user_blocked",
    "hidden_user_ids",
    "CleanupError",
    "CleanupSummary",
    "run_cleanup",
    "add_comment",
    "list_comments",
    "delete_comment",
    "create_event",
    "list_upcoming_events",
    "get_event_or_404",
    "join_event",
    "check_event_join_status",
    "update_event",
    "delete_event",
    "send_friend_request",
    "list_friend_requests",
    "accept_friend_request",
    "sync_accepted_requests",
    "decline_friend_request",
    "cancel_friend_request",
    "add_friend",
    "remove_friend",
    "get_friends",
    "check_friendship",
    "friends_snapshot",
    "serialize_request",
    "send_message",
    "send_media_message",
    "list_messages",
    "share_location",
    "stop_sharing_location",
    "list_locations",
    "add_to_album",
    "add_photo",
    "add_video",
    "upload_to_album",
    "list_photos",
    "create_poll",
    "vote_on_poll",
    "list_polls",
    "delete_poll",
    "create_group",
    "list_user_groups",
    "get_group_or_404",
    "is_group_active",
    "require_member",
    "add_member_by_username",
    "remove_member",
    "send_group_invitation",
    "accept_group_invitation",
    "decline_group_invitation",
    "delete_group",
    "update_group_picture",
    "NotificationType",
    "create_notification",
    "list_notifications",
    "count_unread_notifications",
    "mark_notification_read",
    "mark_all_read",
    "delete_notification",
    "delete_old_notifications",
    "create_post",
    "get_feed",
    "get_posts_by_location",
    "get_visible_post",
    "liked_post_ids",
    "set_post_like_state",
    "delete_post",
    "delete_expired_posts",
    "register_push_token",
    "clear_push_token",
    "report_post",
    "report_user",
    "StorageConfigurationError",
    "StorageUploadError",
    "upload_or_raise_http",
    "search_users",
    "update_profile",
    "relationship_status",
    "reload_user",
    "user_key",
    "get_users_by_keys",
    "get_user_by_username_or_404",
    "get_vote_counts",
    "get_user_vote",
    "vote_for_option",
]

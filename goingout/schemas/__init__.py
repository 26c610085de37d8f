"""Convenience exports for schema layer."""
from .auth import AuthResponse, LoginRequest, RegisterRequest
from .blocks import BlockedUserResponse, BlockListResponse, BlockStatusResponse
from .events import EventCreate, EventJoinResponse, EventListResponse, EventResponse, EventUpdate
from .friends import (
    FriendListResponse,
    FriendRequestPayload,
    FriendRequestResponse,
    FriendsOverviewResponse,
    FriendStatusResponse,
    FriendSyncResponse,
)
from .groups import (
    GroupCreate,
    GroupInvitationPayload,
    GroupLocationResponse,
    GroupMediaMessageCreate,
    GroupMemberPayload,
    GroupMessageCreate,
    GroupMessageListResponse,
    GroupMessageResponse,
    GroupPhotoCreate,
    GroupPhotoResponse,
    GroupResponse,
    LocationSharePayload,
    PollCreate,
    PollOption,
    PollResponse,
    PollVotePayload,
)
from .notifications import NotificationListResponse, NotificationResponse, NotificationSummaryResponse
from .posts import (
    CommentCreate,
    CommentListResponse,
    CommentResponse,
    MediaUploadResponse,
    PostCreate,
    PostFeedResponse,
    PostLikeResponse,
    PostResponse,
)
from .reports import ReportCreate, ReportResponse
from .users import (
    ProfileResponse,
    ProfileUpdateRequest,
    PushTokenRequest,
    UserSearchResponse,
    UserSearchResult,
    UserSummary,
)
from .votes import UserVoteResponse, VoteActionResponse, VoteCount, VoteCountsResponse, VoteRequest

__all__ = [
    "AuthResponse",
    "LoginRequest",
    "RegisterRequest",
    "BlockedUserResponse",
    "BlockListResponse",
    "BlockStatusResponse",
    "EventCreate",
    "EventJoinResponse",
    "EventListResponse",
    "EventResponse",
    "EventUpdate",
    "FriendListResponse",
    "FriendRequestPayload",
    "FriendRequestResponse",
    "FriendsOverviewResponse",
    "FriendStatusResponse",
    "FriendSyncResponse",
    "GroupCreate",
    "GroupInvitationPayload",
    "GroupLocationResponse",
    "GroupMediaMessageCreate",
    "GroupMemberPayload",
    "GroupMessageCreate",
    "GroupMessageListResponse",
    "GroupMessageResponse",
    "GroupPhotoCreate",
    "GroupPhotoResponse",
    "GroupResponse",
    "LocationSharePayload",
    "PollCreate",
    "PollOption",
    "PollResponse",
    "PollVotePayload",
    "NotificationListResponse",
    "NotificationResponse",
    "NotificationSummaryResponse",
    "CommentCreate",
    "CommentListResponse",
    "CommentResponse",
    "MediaUploadResponse",
    "PostCreate",
    "PostFeedResponse",
    "PostLikeResponse",
    "PostResponse",
    "ReportCreate",
    "ReportResponse",
    "ProfileResponse",
    "ProfileUpdateRequest",
    "PushTokenRequest",
    "UserSearchResponse",
    "UserSearchResult",
    "UserSummary",
    "UserVoteResponse",
    "VoteActionResponse",
    "VoteCount",
    "VoteCountsResponse",
    "VoteRequest",
]

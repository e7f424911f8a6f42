"""
Database entities grouped by domain.

Importing this package registers every table on ``Base.metadata``.
"""

from .crowdfunding import (
    CampaignDonation,
    CampaignReward,
    CampaignStatus,
    CampaignUpdate,
    FundingCampaign,
)
from .events import Event, EventComment, EventRsvp, EventStatus, RsvpStatus
from .gamification import Achievement, PointsTransaction, UserAchievement, UserPoints
from .groups import Group, GroupMember, GroupMemberRole, MembershipStatus
from .marketplace import (
    DisputeStatus,
    MarketplaceProduct,
    ProductPurchase,
    ProductStatus,
    RefundStatus,
)
from .messaging import ChatMessage, ChatRoom, ChatRoomType, ChatRoomUser
from .moderation import ContentReport, ReportStatus
from .posts import Post, PostComment, PostShare, PostVisibility, Reaction
from .social import Follow, Friendship, FriendshipStatus
from .users import TeacherProfile, User, UserRole

__all__ = [
    "Achievement",
    "CampaignDonation",
    "CampaignReward",
    "CampaignStatus",
    "CampaignUpdate",
    "ChatMessage",
    "ChatRoom",
    "ChatRoomType",
    "ChatRoomUser",
    "ContentReport",
    "DisputeStatus",
    "Event",
    "EventComment",
    "EventRsvp",
    "EventStatus",
    "Follow",
    "Friendship",
    "FriendshipStatus",
    "FundingCampaign",
    "Group",
    "GroupMember",
    "GroupMemberRole",
    "MarketplaceProduct",
    "MembershipStatus",
    "PointsTransaction",
    "Post",
    "PostComment",
    "PostShare",
    "PostVisibility",
    "ProductPurchase",
    "ProductStatus",
    "Reaction",
    "RefundStatus",
    "ReportStatus",
    "RsvpStatus",
    "TeacherProfile",
    "User",
    "UserAchievement",
    "UserPoints",
    "UserRole",
]

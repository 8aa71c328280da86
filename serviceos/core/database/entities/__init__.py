"""
Database entities organized by business domain.

Importing this package registers every table on ``Base.metadata``.
"""

from .blog import (
    BlogCategory,
    BlogPost,
    BlogPostCategory,
    BlogPostPublication,
    BlogPostTag,
    BlogTag,
    PostStatus,
)
from .bookings import Availability, Booking, BookingStatus, BookingType, LocationType
from .files import AiStatus, File, MediaType, StorageProvider
from .organizations import Client, Member, MemberRole, Organization, Service, User
from .portal import PortalSession
from .sites import NavigationItem, Page, Site, SiteStatus, SiteTheme

__all__ = [
    "AiStatus",
    "Availability",
    "BlogCategory",
    "BlogPost",
    "BlogPostCategory",
    "BlogPostPublication",
    "BlogPostTag",
    "BlogTag",
    "Booking",
    "BookingStatus",
    "BookingType",
    "Client",
    "File",
    "LocationType",
    "MediaType",
    "Member",
    "MemberRole",
    "NavigationItem",
    "Organization",
    "Page",
    "PortalSession",
    "PostStatus",
    "Service",
    "Site",
    "SiteStatus",
    "SiteTheme",
    "StorageProvider",
    "User",
]

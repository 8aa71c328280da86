"""
Repositories organized by business domain.

Every repository except the portal one is bound to a single organization.
"""

from .base import AsyncBaseRepository, QueryBuilder, TenantRepository
from .blog import BlogCategoryRepository, BlogPostRepository, BlogTagRepository
from .bookings import AvailabilityRepository, BookingRepository, BookingTypeRepository
from .files import FilePage, FileRepository
from .organizations import ClientRepository, OrganizationRepository, TenantContext, resolve_tenant
from .portal import PortalSessionRepository
from .sites import PageRepository, SiteRepository

__all__ = [
    "AsyncBaseRepository",
    "AvailabilityRepository",
    "BlogCategoryRepository",
    "BlogPostRepository",
    "BlogTagRepository",
    "BookingRepository",
    "BookingTypeRepository",
    "ClientRepository",
    "FilePage",
    "FileRepository",
    "OrganizationRepository",
    "PageRepository",
    "PortalSessionRepository",
    "QueryBuilder",
    "SiteRepository",
    "TenantContext",
    "TenantRepository",
    "resolve_tenant",
]

"""
File library repository.

Keyword search over names, AI descriptions and tags, with the organization's
filters and page-based pagination. Tags are stored as a JSON list of
lower-case strings; a tag matches when its quoted form appears in the
serialized list.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import String, and_, cast, func, or_
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.text import search_words

from ..entities.files import AiStatus, File, MediaType
from .base import TenantRepository

DEFAULT_PAGE_SIZE = 50


@dataclass
class FilePage:
    """One page of a file listing."""

    files: List[File]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


def normalize_tags(tags: Iterable[str]) -> List[str]:
    """Lower-case, strip and de-duplicate tags, keeping first-seen order."""
    seen: List[str] = []
    for tag in tags:
        value = tag.strip().lower()
        if value and value not in seen:
            seen.append(value)
    return seen


def _tag_condition(word: str):
    return cast(File.tags, String).ilike(f'%"{word.lower()}"%')


def _word_condition(word: str, include_file_name: bool = True):
    pattern = f"%{word}%"
    conditions = [File.name.ilike(pattern), File.ai_description.ilike(pattern), _tag_condition(word)]
    if include_file_name:
        conditions.append(File.file_name.ilike(pattern))
    return or_(*conditions)


def _concept_condition(groups: Sequence[Sequence[str]]):
    """AND across concept groups, OR across the synonyms of one group."""
    return and_(*(or_(*(_word_condition(word, include_file_name=False) for word in group)) for group in groups))


class FileRepository(TenantRepository[File]):
    """Repository for the organization's media library."""

    label = "File"

    def __init__(self, session: AsyncSession, organization_id: str) -> None:
        super().__init__(session, File, organization_id)

    def _filtered(
        self,
        media_type: Optional[MediaType] = None,
        folder: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        client_id: Optional[str] = None,
    ):
        stmt = self.scoped()
        if media_type is not None:
            stmt = stmt.where(File.media_type == media_type)
        if folder:
            stmt = stmt.where(File.folder == folder)
        if tags:
            stmt = stmt.where(or_(*(_tag_condition(tag) for tag in tags)))
        if client_id:
            stmt = stmt.where(File.client_id == client_id)
        return stmt

    async def _page(self, stmt, page: int, limit: int) -> FilePage:
        count = await self.session.exec(select(func.count()).select_from(stmt.subquery()))
        total = count.one()
        result = await self.session.exec(
            stmt.order_by(File.created_at.desc()).offset((page - 1) * limit).limit(limit)
        )
        return FilePage(files=list(result.all()), total=total, page=page, limit=limit)

    async def search(
        self,
        search: Optional[str] = None,
        media_type: Optional[MediaType] = None,
        folder: Optional[str] = None,
        tags: Optional[Sequence[str]] = None,
        client_id: Optional[str] = None,
        page: int = 1,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> FilePage:
        """Paginated file listing.

        Every meaningful word of ``search`` must match the name, file name, AI
        description or a tag. When that finds nothing and the search had more
        than one word, files matching any of the words are returned instead.
        """
        base = self._filtered(media_type=media_type, folder=folder, tags=tags, client_id=client_id)
        words = search_words(search) if search else []
        if not words:
            return await self._page(base, page, limit)

        strict = await self._page(base.where(and_(*(_word_condition(w) for w in words))), page, limit)
        if strict.total or len(words) < 2:
            return strict
        return await self._page(
            base.where(or_(*(_word_condition(w, include_file_name=False) for w in words))), page, limit
        )

    async def matching(
        self, query: str, media_type: Optional[MediaType] = None, limit: Optional[int] = None
    ) -> List[File]:
        """Files whose name, file name, description or tags contain the whole query, newest first."""
        stmt = self._filtered(media_type=media_type).where(_word_condition(query.strip()))
        stmt = stmt.order_by(File.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.exec(stmt)
        return list(result.all())

    async def search_concepts(self, groups: Sequence[Sequence[str]], limit: int = 40) -> FilePage:
        """Match every concept group; relax by dropping the last group when nothing matches."""
        result = await self._page(self.scoped().where(_concept_condition(groups)), 1, limit)
        if result.total == 0 and len(groups) > 2:
            result = await self._page(self.scoped().where(_concept_condition(groups[:-1])), 1, limit)
        return result

    async def folders(self) -> List[str]:
        result = await self.session.exec(
            select(File.folder)
            .where(File.organization_id == self.organization_id, File.folder.is_not(None))
            .distinct()
            .order_by(File.folder)
        )
        return [folder for folder in result.all() if folder]

    async def all_tags(self) -> List[str]:
        result = await self.session.exec(select(File.tags).where(File.organization_id == self.organization_id))
        return sorted({tag for tags in result.all() for tag in (tags or [])})

    async def analyzing_ids(self) -> List[str]:
        result = await self.session.exec(
            select(File.id).where(File.organization_id == self.organization_id, File.ai_status == AiStatus.ANALYZING)
        )
        return list(result.all())

    async def count(self) -> int:
        result = await self.session.exec(
            select(func.count()).select_from(File).where(File.organization_id == self.organization_id)
        )
        return result.one()

    async def for_client(self, client_id: str) -> List[File]:
        result = await self.session.exec(
            self.scoped().where(File.client_id == client_id).order_by(File.created_at.desc())
        )
        return list(result.all())

    async def set_tags(self, file: File, tags: Iterable[str], replace: bool = False) -> File:
        """Replace the tags, or add the new ones after the existing ones."""
        incoming = normalize_tags(tags)
        file.tags = incoming if replace else normalize_tags([*(file.tags or []), *incoming])
        return await self.update(file)

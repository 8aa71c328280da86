"""
Media library workflows spanning storage, the database and the file analyzer.
"""

from __future__ import annotations

import secrets
from typing import Optional

from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from serviceos.core.database.entities.files import AiStatus, File, StorageProvider
from serviceos.core.database.repositories.files import FileRepository, normalize_tags
from serviceos.core.errors import IntegrationError, PayloadTooLargeError
from serviceos.core.logging_config import get_logger
from serviceos.core.text import to_slug
from serviceos.integrations.file_analyzer import FileAnalyzer
from serviceos.integrations.freepik import FreepikClient
from serviceos.integrations.storage import MediaStorage, get_media_type
from serviceos.server.core.constant import MAX_UPLOAD_SIZE

logger = get_logger(__name__)

STOCK_FOLDER = "stock"
STOCK_TAGS = ["stock", "freepik"]


async def store_upload(
    session: AsyncSession,
    storage: MediaStorage,
    organization_id: str,
    *,
    data: bytes,
    file_name: str,
    mime_type: Optional[str],
    folder: Optional[str] = None,
    client_id: Optional[str] = None,
) -> File:
    """
    Upload a file to Cloudinary and record it, waiting for AI analysis.

    Raises:
        PayloadTooLargeError: The file exceeds the upload size limit.
        IntegrationError: Cloudinary rejected the upload.
    """
    if len(data) > MAX_UPLOAD_SIZE:
        raise PayloadTooLargeError("File exceeds 50MB limit")
    result = await storage.upload(data, folder=storage.media_folder(organization_id, folder), mime_type=mime_type)
    file = File(
        organization_id=organization_id,
        client_id=client_id,
        name=file_name,
        file_name=file_name,
        mime_type=mime_type or "application/octet-stream",
        size=result.bytes,
        url=result.secure_url,
        storage_provider=StorageProvider.CLOUDINARY,
        storage_key=result.public_id,
        media_type=get_media_type(mime_type),
        folder=folder or None,
        width=result.width,
        height=result.height,
        ai_status=AiStatus.ANALYZING,
        source="upload",
    )
    return await FileRepository(session, organization_id).create(file)


async def analyze_in_background(
    session_factory: async_sessionmaker, analyzer: FileAnalyzer, organization_id: str, file_id: str
) -> None:
    """
    Describe a freshly stored file and record the outcome.

    Runs after the response was sent, so it opens its own session. The file
    ends ``COMPLETE`` with description and tags, or ``FAILED``.
    """
    async with session_factory() as session:
        files = FileRepository(session, organization_id)
        file = await files.get_by_id(file_id)
        if file is None:
            logger.warning(f"File {file_id} disappeared before analysis")
            return
        try:
            analysis = await analyzer.analyze(url=file.url, mime_type=file.mime_type, file_name=file.file_name)
        except IntegrationError as e:
            logger.warning(f"AI file analysis failed for {file_id}: {e.message}")
            await files.apply_changes(file, {"ai_status": AiStatus.FAILED})
            return
        file.ai_description = analysis.description
        file.ai_status = AiStatus.COMPLETE
        await files.set_tags(file, analysis.suggested_tags)
        logger.debug(f"Analyzed file {file_id}: {len(analysis.suggested_tags)} tags")


async def import_stock_image(
    session: AsyncSession,
    storage: MediaStorage,
    freepik: FreepikClient,
    organization_id: str,
    *,
    resource_id: str,
    folder: Optional[str] = None,
    name: Optional[str] = None,
) -> File:
    """
    Copy a Freepik photo into the media library.

    The stored file name is the slug of the title plus a short random suffix,
    so repeated imports of the same photo do not collide.
    """
    filename, url = await freepik.download_link(resource_id)
    data, mime_type = await freepik.fetch(url)
    extension = filename.rsplit(".", 1)[-1] if "." in filename else "jpg"
    suffix = secrets.token_hex(2)
    stem = (to_slug(name) if name else "") or f"freepik-{resource_id}"
    file_name = f"{stem}-{suffix}.{extension}"
    folder = folder or STOCK_FOLDER

    result = await storage.upload(data, folder=storage.media_folder(organization_id, folder), mime_type=mime_type)
    file = File(
        organization_id=organization_id,
        name=name or file_name,
        file_name=file_name,
        mime_type=mime_type,
        size=result.bytes,
        url=result.secure_url,
        storage_provider=StorageProvider.CLOUDINARY,
        storage_key=result.public_id,
        media_type=get_media_type(mime_type),
        folder=folder,
        tags=normalize_tags(STOCK_TAGS),
        width=result.width,
        height=result.height,
        ai_status=AiStatus.ANALYZING,
        source="freepik",
    )
    file = await FileRepository(session, organization_id).create(file)
    logger.info(f"Imported Freepik resource {resource_id} as file {file.id}")
    return file


async def delete_stored_file(session: AsyncSession, storage: MediaStorage, organization_id: str, file_id: str) -> None:
    """
    Delete a file from storage and the database.

    A storage failure is logged and the row is removed anyway.
    """
    files = FileRepository(session, organization_id)
    file = await files.get_or_raise(file_id)
    try:
        await storage.delete(file)
    except IntegrationError as e:
        logger.warning(f"Storage deletion failed for file {file.id}: {e.message}")
    await files.delete(file.id)

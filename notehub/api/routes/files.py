"""File Routes — download of reference files and chat attachments by their owners."""

from fastapi import APIRouter, Depends, Response

from notehub.api.dependencies import get_current_identity, get_file_service
from notehub.core.domain_types import Identity
from notehub.infrastructure.blob_store import guess_media_type
from notehub.services.files import FileService

router = APIRouter(prefix="/api/v1/files", tags=["files"])


@router.get("/{reference}")
async def download_file(
    reference: str,
    identity: Identity = Depends(get_current_identity),
    files: FileService = Depends(get_file_service),
):
    data = await files.download(identity, reference)
    return Response(content=data, media_type=guess_media_type(reference))

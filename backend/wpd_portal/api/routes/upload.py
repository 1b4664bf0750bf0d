import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile

from wpd_portal.api.deps import get_upload_service
from wpd_portal.schemas import RegistrantRecord
from wpd_portal.services.uploads import VideoUploadService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=RegistrantRecord)
def upload_video(
    email: Optional[str] = Query(None),
    video: Optional[UploadFile] = File(None),
    service: VideoUploadService = Depends(get_upload_service),
):
    """
    Upload (or replace) the registrant's video.
    Replacing a video revokes any earlier approval.
    """
    registrant = service.upload(
        email,
        video.file if video else None,
        filename=video.filename if video else "",
        content_type=video.content_type if video else "",
    )
    return RegistrantRecord.model_validate(registrant)

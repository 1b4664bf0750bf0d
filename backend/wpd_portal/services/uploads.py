import logging
import os
from pathlib import Path
from typing import BinaryIO, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import IntegrationError, InvalidFileType, NotFound, ValidationFailed
from wpd_portal.models.registrant import Registrant
from wpd_portal.services.lifecycle import attach_video
from wpd_portal.services.storage import MediaStorage
from wpd_portal.utils.addresses import normalize_email

logger = logging.getLogger(__name__)

VIDEO = "video"


def file_size(fileobj: BinaryIO) -> int:
    position = fileobj.tell()
    fileobj.seek(0, os.SEEK_END)
    size = fileobj.tell()
    fileobj.seek(position)
    return size


class VideoUploadService:
    def __init__(self, db: Session, storage: MediaStorage, settings: Settings):
        self.db = db
        self.storage = storage
        self.settings = settings

    def validate_file(self, fileobj: Optional[BinaryIO], filename: str, content_type: str):
        if fileobj is None or not filename:
            raise ValidationFailed("No video file uploaded")

        if not (content_type or "").startswith("video/"):
            raise InvalidFileType("Only video files are allowed!")

        extension = Path(filename).suffix.lower().lstrip(".")
        if extension not in self.settings.ALLOWED_VIDEO_FORMATS:
            allowed = ", ".join(self.settings.ALLOWED_VIDEO_FORMATS)
            raise InvalidFileType(f"Unsupported video format '{extension}'. Allowed: {allowed}")

        size = file_size(fileobj)
        if size == 0:
            raise ValidationFailed("Uploaded video is empty")
        if size > self.settings.max_upload_bytes:
            raise ValidationFailed(f"Video too large (max {self.settings.MAX_UPLOAD_SIZE_MB}MB)")

    def _discard(self, public_id: str, reason: str):
        try:
            self.storage.delete(public_id, resource_type=VIDEO)
        except IntegrationError as e:
            logger.error(f"❌ Could not delete video {public_id} ({reason}): {e}")

    def upload(self, email: Optional[str], fileobj: Optional[BinaryIO],
               filename: str = "", content_type: str = "") -> Registrant:
        """
        Store a registrant's video and link it to their record.
        A new upload revokes any earlier approval and certificate.
        """
        if not email:
            raise ValidationFailed("Email query param is required")

        registrant = self.db.query(Registrant).filter(Registrant.email == normalize_email(email)).first()
        if not registrant:
            raise NotFound("User not found")

        self.validate_file(fileobj, filename, content_type)

        stored = self.storage.save(fileobj, filename, folder=self.settings.VIDEO_FOLDER, resource_type=VIDEO)
        previous_public_id = registrant.video_public_id

        attach_video(registrant, url=stored.url, public_id=stored.public_id)
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"❌ Saving upload for {email} failed: {e}")
            self._discard(stored.public_id, "database save failed")
            raise IntegrationError(f"Video upload failed: {e}") from e

        self.db.refresh(registrant)
        logger.info(f"✅ Video uploaded for {email}: {stored.public_id}")

        if previous_public_id and previous_public_id != stored.public_id:
            try:
                self.storage.delete(previous_public_id, resource_type=VIDEO)
            except IntegrationError as e:
                logger.warning(f"⚠️ Could not delete old video {previous_public_id}: {e}")

        return registrant

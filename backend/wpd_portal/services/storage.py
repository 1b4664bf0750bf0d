import logging
import shutil
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

import cloudinary
import cloudinary.uploader

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import IntegrationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredObject:
    url: str
    public_id: str


class MediaStorage:
    """Durable storage for uploaded videos and generated certificates."""

    def save(self, fileobj: BinaryIO, filename: str, folder: str,
             resource_type: str = "raw") -> StoredObject:
        raise NotImplementedError

    def delete(self, public_id: str, resource_type: str = "raw") -> None:
        raise NotImplementedError


class LocalMediaStorage(MediaStorage):
    """Files under MEDIA_ROOT, served by the app at MEDIA_URL."""

    def __init__(self, settings: Settings, root: Path = None):
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = settings.BASE_URL.rstrip("/") + "/" + settings.MEDIA_URL.strip("/") + "/"

    def path_for(self, public_id: str) -> Path:
        path = (self.root / public_id).resolve()
        # prevent directory traversal out of MEDIA_ROOT
        if self.root.resolve() not in path.parents:
            raise IntegrationError(f"Invalid storage identifier: {public_id}")
        return path

    def save(self, fileobj, filename, folder, resource_type="raw"):
        suffix = Path(filename or "").suffix.lower()
        public_id = f"{folder}/{uuid.uuid4().hex}{suffix}"
        path = self.path_for(public_id)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "wb") as out:
                shutil.copyfileobj(fileobj, out)
        except OSError as e:
            logger.error(f"❌ Local storage write failed for {public_id}: {e}")
            raise IntegrationError(f"Storage upload failed: {e}") from e

        logger.info(f"✅ Stored {resource_type} {public_id}")
        return StoredObject(url=self.base_url + public_id, public_id=public_id)

    def delete(self, public_id, resource_type="raw"):
        try:
            self.path_for(public_id).unlink()
        except FileNotFoundError:
            logger.warning(f"⚠️ Nothing to delete at {public_id}")
        except OSError as e:
            raise IntegrationError(f"Storage delete failed: {e}") from e
        else:
            logger.info(f"🗑️ Deleted {resource_type} {public_id}")


class CloudinaryMediaStorage(MediaStorage):
    def __init__(self, settings: Settings):
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )

    def save(self, fileobj, filename, folder, resource_type="raw"):
        try:
            result = cloudinary.uploader.upload_large(
                fileobj,
                folder=folder,
                resource_type=resource_type,
                filename=filename,
                use_filename=resource_type == "raw",
                unique_filename=True,
            )
        except Exception as e:
            logger.error(f"❌ Cloudinary upload failed: {e}")
            raise IntegrationError(f"Storage upload failed: {e}") from e

        logger.info(f"✅ Uploaded {resource_type} to Cloudinary: {result['public_id']}")
        return StoredObject(url=result["secure_url"], public_id=result["public_id"])

    def delete(self, public_id, resource_type="raw"):
        try:
            cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        except Exception as e:
            raise IntegrationError(f"Storage delete failed: {e}") from e
        logger.info(f"🗑️ Deleted {resource_type} {public_id} from Cloudinary")


def build_storage(settings: Settings) -> MediaStorage:
    if settings.STORAGE_BACKEND == "cloudinary":
        return CloudinaryMediaStorage(settings)
    if settings.STORAGE_BACKEND == "local":
        return LocalMediaStorage(settings)
    raise ValueError(f"Unknown STORAGE_BACKEND: {settings.STORAGE_BACKEND}")

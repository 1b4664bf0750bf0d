from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from wpd_portal.core.config import Settings, settings
from wpd_portal.db.session import get_db
from wpd_portal.services.approval import ApprovalService
from wpd_portal.services.certificates import CertificateRenderer, CertificateService, build_renderer
from wpd_portal.services.mailer import Mailer
from wpd_portal.services.registration import RegistrationService
from wpd_portal.services.storage import MediaStorage, build_storage
from wpd_portal.services.uploads import VideoUploadService
from wpd_portal.services.visits import VisitService


def get_settings() -> Settings:
    return settings


@lru_cache
def get_mailer() -> Mailer:
    return Mailer(settings)


@lru_cache
def get_storage() -> MediaStorage:
    return build_storage(settings)


@lru_cache
def get_renderer() -> CertificateRenderer:
    return build_renderer(settings)


def get_certificate_service(
    renderer: CertificateRenderer = Depends(get_renderer),
    storage: MediaStorage = Depends(get_storage),
    config: Settings = Depends(get_settings),
) -> CertificateService:
    return CertificateService(config, renderer, storage)


def get_registration_service(
    db: Session = Depends(get_db),
    mailer: Mailer = Depends(get_mailer),
    config: Settings = Depends(get_settings),
) -> RegistrationService:
    return RegistrationService(db, mailer, config)


def get_upload_service(
    db: Session = Depends(get_db),
    storage: MediaStorage = Depends(get_storage),
    config: Settings = Depends(get_settings),
) -> VideoUploadService:
    return VideoUploadService(db, storage, config)


def get_approval_service(
    db: Session = Depends(get_db),
    certificates: CertificateService = Depends(get_certificate_service),
    mailer: Mailer = Depends(get_mailer),
) -> ApprovalService:
    return ApprovalService(db, certificates, mailer)


def get_visit_service(db: Session = Depends(get_db)) -> VisitService:
    return VisitService(db)

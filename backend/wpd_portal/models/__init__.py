from wpd_portal.models.admin import Admin
from wpd_portal.models.certificate import CertificateIssue, IssueStatus, IssueStep
from wpd_portal.models.registrant import Annotation, Registrant, SubmissionStatus
from wpd_portal.models.visit import Visit

__all__ = [
    "Admin",
    "Annotation",
    "CertificateIssue",
    "IssueStatus",
    "IssueStep",
    "Registrant",
    "SubmissionStatus",
    "Visit",
]

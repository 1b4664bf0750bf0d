from __future__ import annotations

import base64
import io
import logging
from dataclasses import dataclass
from datetime import date

import requests

from wpd_portal.core.config import Settings
from wpd_portal.core.errors import IntegrationError
from wpd_portal.services.storage import MediaStorage, StoredObject
from wpd_portal.utils.templates import format_issue_date, render_template

logger = logging.getLogger(__name__)

LANDSCAPE_A4_CSS = "@page { size: A4 landscape; margin: 0; }"


class CertificateRenderer:
    """Turns certificate HTML into a landscape A4 PDF."""

    name = "base"

    def render(self, html: str, filename: str) -> bytes:
        raise NotImplementedError


class WeasyPrintUnavailableError(IntegrationError):
    pass


class WeasyPrintRenderer(CertificateRenderer):
    name = "weasyprint"

    def render(self, html, filename):
        try:
            from weasyprint import CSS, HTML  # noqa: PLC0415
        except (ImportError, OSError) as e:  # pragma: no cover
            raise WeasyPrintUnavailableError(
                "WeasyPrint is not available in this environment (missing system libraries such as Pango). "
                "Install them or set CERTIFICATE_RENDERER=convertapi."
            ) from e

        try:
            return HTML(string=html).write_pdf(stylesheets=[CSS(string=LANDSCAPE_A4_CSS)])
        except Exception as e:
            raise IntegrationError(f"Certificate conversion failed: {e}") from e


class ConvertApiRenderer(CertificateRenderer):
    """HTML -> PDF through the ConvertAPI REST service."""

    name = "convertapi"

    def __init__(self, settings: Settings, session: requests.Session = None):
        self.url = settings.CONVERTAPI_URL
        self.secret = settings.CONVERTAPI_SECRET
        self.timeout = settings.CONVERTAPI_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def render(self, html, filename):
        if not self.secret:
            raise IntegrationError("Missing CONVERTAPI_SECRET in env")

        params = {
            "FileName": filename.rsplit(".", 1)[0],
            "PageOrientation": "landscape",
            "PageSize": "a4",
            "MarginTop": "0",
            "MarginBottom": "0",
            "MarginLeft": "0",
            "MarginRight": "0",
            "Scale": "90",
            "StoreFile": "false",
        }
        files = {"File": ("certificate.html", io.BytesIO(html.encode("utf-8")), "text/html")}

        try:
            response = self.session.post(
                self.url,
                headers={"Authorization": f"Bearer {self.secret}"},
                data=params,
                files=files,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.HTTPError as e:
            raise IntegrationError(f"ConvertAPI error: {e.response.status_code} {e.response.text[:200]}") from e
        except (requests.RequestException, ValueError) as e:
            raise IntegrationError(f"ConvertAPI request failed: {e}") from e

        converted = result.get("Files") or []
        if not converted or not converted[0].get("FileData"):
            raise IntegrationError("ConvertAPI did not return a PDF file.")
        return base64.b64decode(converted[0]["FileData"])


def build_renderer(settings: Settings) -> CertificateRenderer:
    if settings.CERTIFICATE_RENDERER == "convertapi":
        return ConvertApiRenderer(settings)
    if settings.CERTIFICATE_RENDERER == "weasyprint":
        return WeasyPrintRenderer()
    raise ValueError(f"Unknown CERTIFICATE_RENDERER: {settings.CERTIFICATE_RENDERER}")


@dataclass(frozen=True)
class CertificateData:
    annotation: str
    name: str
    company_name: str
    issued_on: date

    @property
    def filename(self) -> str:
        safe_name = "_".join(self.name.split()) or "Participant"
        return f"World_Pest_Day_Certificate_{safe_name}.pdf"


class CertificateService:
    """Template -> PDF -> storage. Each stage can be called on its own."""

    def __init__(self, settings: Settings, renderer: CertificateRenderer, storage: MediaStorage):
        self.settings = settings
        self.renderer = renderer
        self.storage = storage

    def render_html(self, data: CertificateData) -> str:
        return render_template(
            "certificate.html",
            annotation=(data.annotation or "").strip(),
            name=(data.name or "").strip() or "Unknown Participant",
            company_name=(data.company_name or "").strip() or "N/A",
            issue_date=format_issue_date(data.issued_on),
            logo_url=self.settings.CERTIFICATE_LOGO_URL,
            president_signature_url=self.settings.CERTIFICATE_PRESIDENT_SIGNATURE_URL,
            vp_signature_url=self.settings.CERTIFICATE_VP_SIGNATURE_URL,
            secretary_signature_url=self.settings.CERTIFICATE_SECRETARY_SIGNATURE_URL,
        )

    def convert(self, html: str, data: CertificateData) -> bytes:
        logger.info(f"🖨️ Converting certificate with {self.renderer.name}")
        return self.renderer.render(html, data.filename)

    def store(self, pdf: bytes, data: CertificateData) -> StoredObject:
        return self.storage.save(
            io.BytesIO(pdf),
            data.filename,
            folder=self.settings.CERTIFICATE_FOLDER,
            resource_type="raw",
        )

    def issue(self, data: CertificateData) -> str:
        """Render, convert and store a certificate; returns its public URL."""
        html = self.render_html(data)
        pdf = self.convert(html, data)
        return self.store(pdf, data).url

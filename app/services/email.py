"""
Transactional e-mail for the signature workflow, sent through the Resend HTTP API.

- Signature request: link to the signing page, sent to the signer
- Signature confirmation: sent to the signer, with a notification to the company
"""
import logging
from datetime import datetime
from html import escape
from typing import Optional
import httpx
from app.core.config import settings
from app.models.domain import Document, Empresa
from app.models.enums import DocumentType

logger = logging.getLogger(__name__)


class EmailServiceError(Exception):
    """Raised when an e-mail cannot be delivered to the provider"""
    pass


def document_label(document: Document) -> str:
    return "Invoice" if document.document_type == DocumentType.INVOICE else "Proposal"


def signing_url(token: str, locale: Optional[str] = None) -> str:
    base_url = settings.FRONTEND_URL.rstrip("/")
    return f"{base_url}/{locale or settings.SIGNATURE_LOCALE}/sign/{token}"


def _layout(title: str, body: str, empresa: Empresa) -> str:
    return f"""<!DOCTYPE html>
<html>
  <head><meta charset="UTF-8"></head>
  <body style="font-family: Arial, sans-serif; background-color: #f3f4f6; margin: 0; padding: 24px;">
    <div style="max-width: 600px; margin: 0 auto; background: #ffffff; padding: 32px;">
      <h1 style="font-size: 22px; color: #111827;">{escape(title)}</h1>
      {body}
      <p style="font-size: 12px; color: #6b7280; margin-top: 32px;">
        This is a legally binding electronic signature compliant with the ESIGN Act and UETA.
      </p>
      <p style="font-size: 12px; color: #6b7280;">&copy; {datetime.now().year} {escape(empresa.nombre)}. All rights reserved.</p>
    </div>
  </body>
</html>"""


class EmailService:
    """Thin client over the Resend `POST /emails` endpoint"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(settings.RESEND_API_KEY)

    async def send(self, to: str, subject: str, html: str, reply_to: Optional[str] = None) -> dict:
        """
        Send one e-mail.

        Returns:
            Provider response body (contains the message id)

        Raises:
            EmailServiceError: If the provider is not configured or rejects the message
        """
        if not self.enabled:
            raise EmailServiceError("RESEND_API_KEY is not configured")

        message = {
            "from": f"{settings.RESEND_FROM_NAME} <{settings.RESEND_FROM_EMAIL}>",
            "to": [to],
            "subject": subject,
            "html": html,
        }
        if reply_to:
            message["reply_to"] = reply_to

        try:
            async with httpx.AsyncClient(transport=self.transport, timeout=30.0) as client:
                response = await client.post(
                    settings.RESEND_API_URL,
                    json=message,
                    headers={"Authorization": f"Bearer {settings.RESEND_API_KEY}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as e:
            raise EmailServiceError(f"Failed to send e-mail to {to}: {e}")

        return response.json()

    async def send_signature_request(
        self,
        signer_email: str,
        signer_name: str,
        token: str,
        document: Document,
        empresa: Empresa,
        expires_at: datetime,
    ) -> dict:
        label = document_label(document)
        url = signing_url(token)
        body = f"""
      <p>Hello {escape(signer_name)},</p>
      <p><strong>{escape(empresa.nombre)}</strong> has requested your signature on
         {label} {escape(document.number)} ({float(document.total):.2f} {escape(empresa.moneda)}).</p>
      <p><a href="{escape(url)}" style="background: #2563eb; color: #ffffff; padding: 12px 24px;
         text-decoration: none; border-radius: 6px;">Review and Sign</a></p>
      <p style="color: #6b7280;">This link expires on {expires_at.strftime("%B %d, %Y")}.</p>"""

        result = await self.send(
            to=signer_email,
            subject=f"Signature Required: {label} {document.number}",
            html=_layout(f"Signature requested by {empresa.nombre}", body, empresa),
            reply_to=empresa.email,
        )
        logger.info(f"Signature request e-mail sent to {signer_email} for {document.number}")
        return result

    async def send_signature_confirmation(
        self,
        signer_email: str,
        signer_name: str,
        document: Document,
        empresa: Empresa,
        signed_at: datetime,
        signed_pdf_url: Optional[str] = None,
    ) -> dict:
        """Confirm to the signer, then notify the company when it has an address."""
        label = document_label(document)
        signed_date = signed_at.strftime("%B %d, %Y %H:%M")
        pdf_link = (
            f'<p><a href="{escape(signed_pdf_url)}">Download the signed document</a></p>'
            if signed_pdf_url else ""
        )

        signer_body = f"""
      <p>Hello {escape(signer_name or "there")},</p>
      <p>Your signature has been successfully recorded and the document has been completed.</p>
      <p>{label} {escape(document.number)} &middot; signed on {signed_date}</p>
      {pdf_link}"""
        result = await self.send(
            to=signer_email,
            subject=f"Confirmation: {label} {document.number} Signed",
            html=_layout("Document Signed", signer_body, empresa),
            reply_to=empresa.email,
        )
        logger.info(f"Signature confirmation e-mail sent to {signer_email}")

        if empresa.email:
            owner_body = f"""
      <p>Hello,</p>
      <p><strong>{escape(signer_name)}</strong> has signed {label} {escape(document.number)}.</p>
      <p>Signed on {signed_date}</p>
      {pdf_link}"""
            await self.send(
                to=empresa.email,
                subject=f"Signed: {label} {document.number} by {signer_name}",
                html=_layout("Document Signed", owner_body, empresa),
            )
            logger.info(f"Signature notification sent to {empresa.email}")

        return result


email_service = EmailService()

"""
Electronic signature workflow for invoices and proformas.

Endpoints:
- POST /signatures/request - Create a signature request for a document (owner)
- POST /signatures/{token}/send-email - (Re)send the signing link (owner)
- GET /signatures/validate/{token} - Validate token and get document to sign
- POST /signatures/submit - Submit signature with consent and audit data
- GET /signatures/status/{token} - Get signature request status
"""
import logging
from datetime import datetime, timedelta, timezone
from fastapi import APIRouter, HTTPException
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import selectinload
from app.core.config import settings
from app.core.s3 import StorageError, storage_enabled, upload_signature_image, upload_signed_pdf
from app.core.security import generate_signature_token
from app.deps import CurrentUser, DbSession
from app.models.domain import Document
from app.models.enums import DocumentType, SignatureRequestStatus
from app.models.signature import Signature, SignatureRequest
from app.schemas.signature import (
    ClienteInfo,
    DocumentInfo,
    DocumentLineInfo,
    EmpresaInfo,
    MessageResponse,
    SendEmailRequest,
    SignatureRequestCreate,
    SignatureRequestCreated,
    SignatureRequestInfo,
    SignatureStatus,
    SignatureSubmit,
    SignatureSubmitted,
    SignatureSummary,
    SignatureValidation,
)
from app.services.email import EmailServiceError, email_service
from app.services.expiry import is_expired
from app.services.pdf_service import PDFServiceError, pdf_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/signatures", tags=["Signatures"])

DEFAULT_CONSENT_TEXT = "I agree to electronically sign this document."


def _document_info(document: Document) -> DocumentInfo:
    return DocumentInfo(
        id=document.id,
        serie=document.serie,
        numero=document.numero,
        fecha_emision=document.fecha_emision,
        subtotal=float(document.subtotal),
        igv=float(document.igv),
        total=float(document.total),
        cliente=ClienteInfo.model_validate(document.cliente),
        detalles=[
            DocumentLineInfo(
                id=line.id,
                descripcion=line.descripcion,
                cantidad=line.cantidad,
                precio_unitario=float(line.precio_unitario),
                subtotal=float(line.subtotal),
                igv=float(line.igv),
                total=float(line.total),
            )
            for line in document.detalles
        ],
    )


def _signature_summary(signature: Signature | None) -> SignatureSummary | None:
    if signature is None:
        return None
    return SignatureSummary(
        id=signature.id,
        signed_at=signature.signed_at,
        signed_pdf_url=signature.signed_pdf_url,
    )


@router.post("/request", response_model=SignatureRequestCreated)
async def create_signature_request(
    data: SignatureRequestCreate,
    user: CurrentUser,
    db: DbSession,
):
    """
    Create a signature request for one of the caller's documents.

    The signing link expires after SIGNATURE_EXPIRE_DAYS. When `sendEmail` is set,
    the link is e-mailed to the signer; a delivery failure does not fail the request.
    """
    if not data.document_type or not data.document_id or not data.signer_email:
        raise HTTPException(status_code=400, detail="Missing required fields")

    try:
        document_type = DocumentType(data.document_type)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid document type")

    result = await db.execute(
        select(Document)
        .options(selectinload(Document.empresa))
        .where(
            Document.id == data.document_id,
            Document.document_type == document_type,
            Document.empresa_id == user.empresa_id,
        )
    )
    document = result.scalar_one_or_none()

    if not document:
        raise HTTPException(status_code=404, detail="Document not found")

    now = datetime.now(timezone.utc)
    signature_request = SignatureRequest(
        token=generate_signature_token(),
        document_type=document_type,
        document_id=document.id,
        signer_email=data.signer_email,
        signer_name=data.signer_name or None,
        status=SignatureRequestStatus.PENDING,
        expires_at=now + timedelta(days=settings.SIGNATURE_EXPIRE_DAYS),
        requested_by=user.id,
        empresa_id=document.empresa_id,
        sent_at=now if data.send_email else None,
    )
    db.add(signature_request)
    await db.commit()
    await db.refresh(signature_request)

    logger.info(f"Signature request {signature_request.id} created for {document.number}")

    if data.send_email:
        if not email_service.enabled:
            logger.warning("E-mail not configured - signature request created without notification")
        else:
            try:
                await email_service.send_signature_request(
                    signer_email=data.signer_email,
                    signer_name=data.signer_name or data.signer_email,
                    token=signature_request.token,
                    document=document,
                    empresa=document.empresa,
                    expires_at=signature_request.expires_at,
                )
            except EmailServiceError as e:
                logger.error(f"Failed to send signature request e-mail: {e}")

    return SignatureRequestCreated(
        id=signature_request.id,
        token=signature_request.token,
        expires_at=signature_request.expires_at,
        signing_url=f"/sign/{signature_request.token}",
    )


@router.post("/{token}/send-email", response_model=MessageResponse)
async def send_signature_email(
    token: str,
    data: SendEmailRequest,
    user: CurrentUser,
    db: DbSession,
):
    """Send (or resend) the signing link for an existing pending request."""
    result = await db.execute(
        select(SignatureRequest)
        .options(
            selectinload(SignatureRequest.document),
            selectinload(SignatureRequest.empresa),
        )
        .where(
            SignatureRequest.token == token,
            SignatureRequest.empresa_id == user.empresa_id,
        )
    )
    signature_request = result.scalar_one_or_none()

    if not signature_request:
        raise HTTPException(status_code=404, detail="Signature request not found")

    if signature_request.status != SignatureRequestStatus.PENDING:
        raise HTTPException(status_code=400, detail="Signature request is not pending")

    try:
        await email_service.send_signature_request(
            signer_email=data.signer_email,
            signer_name=data.signer_name or data.signer_email,
            token=token,
            document=signature_request.document,
            empresa=signature_request.empresa,
            expires_at=signature_request.expires_at,
        )
    except EmailServiceError as e:
        logger.error(f"Failed to send signature request e-mail: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to send email: {e}")

    signature_request.sent_at = datetime.now(timezone.utc)
    await db.commit()

    return MessageResponse(message="Email sent successfully")


@router.get("/validate/{token}", response_model=SignatureValidation)
async def validate_signature_token(
    token: str,
    db: DbSession,
):
    """
    Validate a signing link and return the document to sign.

    Called when the signer opens the link. Expired requests are marked EXPIRED here;
    the first successful call records `viewed_at`.
    """
    result = await db.execute(
        select(SignatureRequest)
        .options(
            selectinload(SignatureRequest.empresa),
            selectinload(SignatureRequest.signature),
            selectinload(SignatureRequest.document).selectinload(Document.cliente),
            selectinload(SignatureRequest.document).selectinload(Document.detalles),
        )
        .where(SignatureRequest.token == token)
    )
    signature_request = result.scalar_one_or_none()

    if not signature_request:
        raise HTTPException(status_code=404, detail="Invalid signature request")

    if signature_request.status == SignatureRequestStatus.SIGNED:
        raise HTTPException(status_code=400, detail="Document already signed")

    if signature_request.status == SignatureRequestStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Signature request cancelled")

    if signature_request.status == SignatureRequestStatus.EXPIRED or is_expired(signature_request):
        if signature_request.status != SignatureRequestStatus.EXPIRED:
            signature_request.status = SignatureRequestStatus.EXPIRED
            await db.commit()
        raise HTTPException(status_code=400, detail="Signature request expired")

    if not signature_request.viewed_at:
        signature_request.viewed_at = datetime.now(timezone.utc)
        await db.commit()

    empresa = signature_request.empresa
    return SignatureValidation(
        signature_request=SignatureRequestInfo(
            id=signature_request.id,
            document_type=signature_request.document_type.value,
            signer_email=signature_request.signer_email,
            signer_name=signature_request.signer_name,
            expires_at=signature_request.expires_at,
        ),
        empresa=EmpresaInfo(nombre=empresa.nombre, logo_url=empresa.logo_url, email=empresa.email),
        document=_document_info(signature_request.document),
    )


@router.post("/submit", response_model=SignatureSubmitted)
async def submit_signature(
    data: SignatureSubmit,
    db: DbSession,
):
    """
    Submit a signature and consume the signing link.

    Workflow:
    1. Check required fields (token, signature image, consent)
    2. Verify the request is pending and not expired
    3. Decode the signature image and, when present, the client-composed PDF
    4. Upload both to S3 when configured (image falls back to its data URI)
    5. Record the signature audit trail and mark the request SIGNED
    6. E-mail confirmations to signer and company
    """
    if not data.token or not data.signature_data_url or not data.consent_given:
        raise HTTPException(status_code=400, detail="Missing required fields")

    result = await db.execute(
        select(SignatureRequest)
        .options(
            selectinload(SignatureRequest.document),
            selectinload(SignatureRequest.empresa),
        )
        .where(SignatureRequest.token == data.token)
        .with_for_update()
    )
    signature_request = result.scalar_one_or_none()

    if not signature_request:
        raise HTTPException(status_code=404, detail="Invalid signature request")

    if signature_request.status != SignatureRequestStatus.PENDING:
        raise HTTPException(status_code=400, detail="Signature request is not pending")

    if is_expired(signature_request):
        signature_request.status = SignatureRequestStatus.EXPIRED
        await db.commit()
        raise HTTPException(status_code=400, detail="Signature request expired")

    try:
        _, signature_bytes = pdf_service.decode_signature(data.signature_data_url)
        pdf_bytes = (
            pdf_service.decode_signed_pdf(data.signed_pdf_data_url)
            if data.signed_pdf_data_url else None
        )
    except PDFServiceError as e:
        raise HTTPException(status_code=400, detail=f"Failed to process signature: {str(e)}")

    document = signature_request.document
    signature_image_url = data.signature_data_url
    signed_pdf_url = None

    if storage_enabled():
        try:
            signature_image_url = upload_signature_image(signature_bytes, data.token)
        except StorageError as e:
            logger.error(f"Error uploading signature image: {e}")

        if pdf_bytes:
            try:
                signed_pdf_url = upload_signed_pdf(pdf_bytes, document.number)
            except StorageError as e:
                logger.error(f"Error uploading signed PDF: {e}")
    else:
        logger.info("Storing signature as data URI (S3 not configured)")
        if pdf_bytes:
            logger.warning(f"Signed PDF for {document.number} discarded (S3 not configured)")

    signature = Signature(
        signature_request_id=signature_request.id,
        signature_image_url=signature_image_url,
        signed_pdf_url=signed_pdf_url,
        signer_name=signature_request.signer_name or "Unknown",
        signer_email=signature_request.signer_email,
        signed_at=datetime.now(timezone.utc),
        consent_given=data.consent_given,
        consent_text=data.consent_text or DEFAULT_CONSENT_TEXT,
        ip_address=data.ip_address or None,
        user_agent=data.user_agent or None,
        device_type=data.device_type or None,
    )

    try:
        db.add(signature)
        signature_request.status = SignatureRequestStatus.SIGNED
        await db.commit()
        await db.refresh(signature)
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error(f"Error recording signature for request {signature_request.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to submit signature")

    logger.info(f"Signature request {signature_request.id} signed by {signature.signer_email}")

    if not email_service.enabled:
        logger.warning("E-mail not configured - skipping signature confirmation")
    else:
        try:
            await email_service.send_signature_confirmation(
                signer_email=signature.signer_email,
                signer_name=signature.signer_name,
                document=document,
                empresa=signature_request.empresa,
                signed_at=signature.signed_at,
                signed_pdf_url=signature.signed_pdf_url,
            )
        except EmailServiceError as e:
            logger.error(f"Failed to send signature confirmation e-mails: {e}")

    return SignatureSubmitted(signature=_signature_summary(signature))


@router.get("/status/{token}", response_model=SignatureStatus)
async def get_signature_status(
    token: str,
    db: DbSession,
):
    result = await db.execute(
        select(SignatureRequest)
        .options(selectinload(SignatureRequest.signature))
        .where(SignatureRequest.token == token)
    )
    signature_request = result.scalar_one_or_none()

    if not signature_request:
        raise HTTPException(status_code=404, detail="Invalid signature request")

    return SignatureStatus(
        status=signature_request.status.value,
        expires_at=signature_request.expires_at,
        viewed_at=signature_request.viewed_at,
        signature=_signature_summary(signature_request.signature),
    )

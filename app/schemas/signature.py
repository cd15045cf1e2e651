from datetime import date, datetime
from typing import Optional
from pydantic import Field
from app.schemas.common import CamelModel


class SignatureRequestCreate(CamelModel):
    """Owner asks a signer to sign one of the company's documents"""
    document_type: Optional[str] = None
    document_id: Optional[int] = None
    signer_email: Optional[str] = None
    signer_name: Optional[str] = None
    send_email: bool = True


class SignatureRequestCreated(CamelModel):
    success: bool = True
    id: int
    token: str
    expires_at: datetime
    signing_url: str


class SendEmailRequest(CamelModel):
    signer_email: str
    signer_name: Optional[str] = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class SignatureRequestInfo(CamelModel):
    id: int
    document_type: str
    signer_email: str
    signer_name: Optional[str] = None
    expires_at: datetime


class EmpresaInfo(CamelModel):
    nombre: str
    logo_url: Optional[str] = None
    email: Optional[str] = None


class ClienteInfo(CamelModel):
    id: int
    nombre: str
    numero_documento: Optional[str] = None
    email: Optional[str] = None
    direccion: Optional[str] = None


class DocumentLineInfo(CamelModel):
    id: int
    descripcion: str
    cantidad: int
    precio_unitario: float
    subtotal: float
    igv: float
    total: float


class DocumentInfo(CamelModel):
    id: int
    serie: str
    numero: str
    fecha_emision: date
    subtotal: float
    igv: float
    total: float
    cliente: ClienteInfo
    detalles: list[DocumentLineInfo] = Field(default_factory=list)


class SignatureValidation(CamelModel):
    """Everything the signing page needs to render the document before signing"""
    success: bool = True
    signature_request: SignatureRequestInfo
    empresa: EmpresaInfo
    document: DocumentInfo


class SignatureSubmit(CamelModel):
    """
    Submission payload sent by the signing client.

    Fields are optional at the schema level so that incomplete submissions get the
    same `{"error": "Missing required fields"}` answer as the rest of the API.
    `signed_pdf_data_url` may legitimately be null when no PDF could be composed.
    """
    token: Optional[str] = None
    signature_data_url: Optional[str] = None
    signed_pdf_data_url: Optional[str] = None
    consent_given: bool = False
    consent_text: Optional[str] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    device_type: Optional[str] = None


class SignatureSummary(CamelModel):
    id: int
    signed_at: datetime
    signed_pdf_url: Optional[str] = None


class SignatureSubmitted(CamelModel):
    success: bool = True
    signature: SignatureSummary


class SignatureStatus(CamelModel):
    status: str
    expires_at: datetime
    viewed_at: Optional[datetime] = None
    signature: Optional[SignatureSummary] = None

from datetime import datetime
from sqlalchemy import String, DateTime, Boolean, Text, Enum as SAEnum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.db import Base
from app.models.base import TimestampMixin
from app.models.enums import DocumentType, SignatureRequestStatus


class SignatureRequest(Base, TimestampMixin):
    """
    One pending signing task.

    The token is a bearer capability: whoever holds the link may sign, once.
    """
    __tablename__ = "signature_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    token: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    document_type: Mapped[DocumentType] = mapped_column(
        SAEnum(DocumentType, native_enum=False, length=20), nullable=False
    )
    signer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    signer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[SignatureRequestStatus] = mapped_column(
        SAEnum(SignatureRequestStatus, native_enum=False, length=20),
        default=SignatureRequestStatus.PENDING, nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    viewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    sent_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    requested_by: Mapped[str] = mapped_column(String(64), nullable=False, default="system")

    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)
    empresa_id: Mapped[int] = mapped_column(ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False)

    document: Mapped["Document"] = relationship("Document")
    empresa: Mapped["Empresa"] = relationship("Empresa")
    signature: Mapped["Signature"] = relationship(
        "Signature", back_populates="signature_request", uselist=False
    )


class Signature(Base):
    """Audit record of a completed electronic signature."""
    __tablename__ = "signatures"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    signature_image_url: Mapped[str] = mapped_column(Text, nullable=False)  # S3 URL or data URI
    signed_pdf_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    signer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    signer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    signed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    consent_given: Mapped[bool] = mapped_column(Boolean, nullable=False)
    consent_text: Mapped[str] = mapped_column(Text, nullable=False)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    signature_request_id: Mapped[int] = mapped_column(
        ForeignKey("signature_requests.id", ondelete="CASCADE"), unique=True, nullable=False
    )

    signature_request: Mapped["SignatureRequest"] = relationship("SignatureRequest", back_populates="signature")

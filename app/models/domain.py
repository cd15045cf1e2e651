from datetime import date
from decimal import Decimal
from sqlalchemy import String, Date, Integer, Numeric, Text, Enum as SAEnum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.db import Base
from app.models.base import TimestampMixin
from app.models.enums import DocumentType


class Empresa(Base, TimestampMixin):
    """Tenant company issuing invoices and proformas."""
    __tablename__ = "empresas"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    ruc: Mapped[str | None] = mapped_column(String(20), nullable=True)
    direccion: Mapped[str | None] = mapped_column(Text, nullable=True)
    telefono: Mapped[str | None] = mapped_column(String(30), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    moneda: Mapped[str] = mapped_column(String(3), default="USD", nullable=False)

    users: Mapped[list["User"]] = relationship("User", back_populates="empresa")
    clientes: Mapped[list["Cliente"]] = relationship("Cliente", back_populates="empresa")
    documents: Mapped[list["Document"]] = relationship("Document", back_populates="empresa")


class Cliente(Base, TimestampMixin):
    __tablename__ = "clientes"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    nombre: Mapped[str] = mapped_column(String(255), nullable=False)
    numero_documento: Mapped[str | None] = mapped_column(String(20), nullable=True)
    email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    direccion: Mapped[str | None] = mapped_column(Text, nullable=True)

    empresa_id: Mapped[int] = mapped_column(ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False)

    empresa: Mapped["Empresa"] = relationship("Empresa", back_populates="clientes")


class Document(Base, TimestampMixin):
    """Invoice (factura) or proforma; `serie`-`numero` is the printed number."""
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    document_type: Mapped[DocumentType] = mapped_column(
        SAEnum(DocumentType, native_enum=False, length=20), nullable=False, index=True
    )
    serie: Mapped[str] = mapped_column(String(10), nullable=False)
    numero: Mapped[str] = mapped_column(String(20), nullable=False)
    fecha_emision: Mapped[date] = mapped_column(Date, nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    igv: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=0, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    observaciones: Mapped[str | None] = mapped_column(Text, nullable=True)

    empresa_id: Mapped[int] = mapped_column(ForeignKey("empresas.id", ondelete="CASCADE"), nullable=False)
    cliente_id: Mapped[int] = mapped_column(ForeignKey("clientes.id", ondelete="RESTRICT"), nullable=False)

    empresa: Mapped["Empresa"] = relationship("Empresa", back_populates="documents")
    cliente: Mapped["Cliente"] = relationship("Cliente")
    detalles: Mapped[list["DocumentLine"]] = relationship(
        "DocumentLine", back_populates="document", cascade="all, delete-orphan", order_by="DocumentLine.id"
    )

    @property
    def number(self) -> str:
        return f"{self.serie}-{self.numero}"


class DocumentLine(Base):
    __tablename__ = "document_lines"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    descripcion: Mapped[str] = mapped_column(Text, nullable=False)
    cantidad: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    precio_unitario: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)
    igv: Mapped[Decimal] = mapped_column(Numeric(15, 2), default=0, nullable=False)
    total: Mapped[Decimal] = mapped_column(Numeric(15, 2), nullable=False)

    document_id: Mapped[int] = mapped_column(ForeignKey("documents.id", ondelete="CASCADE"), nullable=False)

    document: Mapped["Document"] = relationship("Document", back_populates="detalles")

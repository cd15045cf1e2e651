"""Create companies, documents and electronic signature tables

Revision ID: 001_signature_tables
Revises:
Create Date: 2026-10-16 00:00:00.000000

"""
from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_signature_tables'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'empresas',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(255), nullable=False),
        sa.Column('ruc', sa.String(20), nullable=True),
        sa.Column('direccion', sa.Text(), nullable=True),
        sa.Column('telefono', sa.String(30), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('moneda', sa.String(3), nullable=False, server_default='USD'),
        *_timestamps(),
    )
    op.create_index('ix_empresas_id', 'empresas', ['id'])

    op.create_table(
        'users',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='ACTIVE'),
        sa.Column('empresa_id', sa.Integer(), sa.ForeignKey('empresas.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'clientes',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('nombre', sa.String(255), nullable=False),
        sa.Column('numero_documento', sa.String(20), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('direccion', sa.Text(), nullable=True),
        sa.Column('empresa_id', sa.Integer(), sa.ForeignKey('empresas.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_clientes_id', 'clientes', ['id'])

    op.create_table(
        'documents',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('document_type', sa.String(20), nullable=False),
        sa.Column('serie', sa.String(10), nullable=False),
        sa.Column('numero', sa.String(20), nullable=False),
        sa.Column('fecha_emision', sa.Date(), nullable=False),
        sa.Column('subtotal', sa.Numeric(15, 2), nullable=False),
        sa.Column('igv', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(15, 2), nullable=False),
        sa.Column('observaciones', sa.Text(), nullable=True),
        sa.Column('empresa_id', sa.Integer(), sa.ForeignKey('empresas.id', ondelete='CASCADE'), nullable=False),
        sa.Column('cliente_id', sa.Integer(), sa.ForeignKey('clientes.id', ondelete='RESTRICT'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_documents_id', 'documents', ['id'])
    op.create_index('ix_documents_document_type', 'documents', ['document_type'])

    op.create_table(
        'document_lines',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('descripcion', sa.Text(), nullable=False),
        sa.Column('cantidad', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('precio_unitario', sa.Numeric(15, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(15, 2), nullable=False),
        sa.Column('igv', sa.Numeric(15, 2), nullable=False, server_default='0'),
        sa.Column('total', sa.Numeric(15, 2), nullable=False),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
    )
    op.create_index('ix_document_lines_id', 'document_lines', ['id'])

    op.create_table(
        'signature_requests',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('document_type', sa.String(20), nullable=False),
        sa.Column('signer_email', sa.String(255), nullable=False),
        sa.Column('signer_name', sa.String(255), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='PENDING'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('viewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('sent_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('requested_by', sa.String(64), nullable=False, server_default='system'),
        sa.Column('document_id', sa.Integer(), sa.ForeignKey('documents.id', ondelete='CASCADE'), nullable=False),
        sa.Column('empresa_id', sa.Integer(), sa.ForeignKey('empresas.id', ondelete='CASCADE'), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_signature_requests_id', 'signature_requests', ['id'])
    op.create_index('ix_signature_requests_token', 'signature_requests', ['token'], unique=True)
    op.create_index('ix_signature_requests_status', 'signature_requests', ['status'])

    op.create_table(
        'signatures',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('signature_image_url', sa.Text(), nullable=False),
        sa.Column('signed_pdf_url', sa.Text(), nullable=True),
        sa.Column('signer_name', sa.String(255), nullable=False),
        sa.Column('signer_email', sa.String(255), nullable=False),
        sa.Column('signed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('consent_given', sa.Boolean(), nullable=False),
        sa.Column('consent_text', sa.Text(), nullable=False),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('device_type', sa.String(20), nullable=True),
        sa.Column(
            'signature_request_id',
            sa.Integer(),
            sa.ForeignKey('signature_requests.id', ondelete='CASCADE'),
            nullable=False,
            unique=True,
        ),
    )
    op.create_index('ix_signatures_id', 'signatures', ['id'])


def downgrade() -> None:
    op.drop_table('signatures')
    op.drop_table('signature_requests')
    op.drop_table('document_lines')
    op.drop_table('documents')
    op.drop_table('clientes')
    op.drop_table('users')
    op.drop_table('empresas')

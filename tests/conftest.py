import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("AUTH_JWT_SECRET", "test-secret")
os.environ["RESEND_API_KEY"] = ""
os.environ["AWS_BUCKET_NAME"] = ""
os.environ["EXPIRY_SWEEP_ENABLED"] = "false"

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from types import SimpleNamespace

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.core.db import Base, get_db
from app.core.security import create_access_token, generate_signature_token
from app.models.auth import User
from app.models.domain import Cliente, Document, DocumentLine, Empresa
from app.models.enums import DocumentType, SignatureRequestStatus
from app.models.signature import SignatureRequest
from app.signing.canvas import Bounds, MouseInput, SignatureCanvas
from main import app as fastapi_app

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    fastapi_app.dependency_overrides[get_db] = override_get_db
    transport = httpx.ASGITransport(app=fastapi_app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def seeded(session_factory):
    """Two companies; the first owns a proforma with one line item."""
    async with session_factory() as db:
        empresa = Empresa(nombre="Acme Builders", email="owner@acme.test", moneda="USD")
        other = Empresa(nombre="Other Co")
        db.add_all([empresa, other])
        await db.flush()

        cliente = Cliente(nombre="Jane Client", email="jane@client.test", empresa_id=empresa.id)
        db.add_all([
            User(id=OWNER_ID, email="owner@acme.test", empresa_id=empresa.id),
            User(id=OTHER_OWNER_ID, email="owner@other.test", empresa_id=other.id),
            cliente,
        ])
        await db.flush()

        document = Document(
            document_type=DocumentType.PROFORMA,
            serie="P001",
            numero="000042",
            fecha_emision=date(2026, 10, 1),
            subtotal=Decimal("100.00"),
            igv=Decimal("18.00"),
            total=Decimal("118.00"),
            empresa_id=empresa.id,
            cliente_id=cliente.id,
            detalles=[
                DocumentLine(
                    descripcion="Site survey",
                    cantidad=1,
                    precio_unitario=Decimal("100.00"),
                    subtotal=Decimal("100.00"),
                    igv=Decimal("18.00"),
                    total=Decimal("118.00"),
                )
            ],
        )
        db.add(document)
        await db.commit()
        return SimpleNamespace(empresa_id=empresa.id, other_empresa_id=other.id, document_id=document.id)


@pytest.fixture
def make_request(session_factory, seeded):
    async def _make(
        status: SignatureRequestStatus = SignatureRequestStatus.PENDING,
        expires_in: timedelta = timedelta(days=7),
        signer_name: str | None = "Jane Client",
    ) -> SignatureRequest:
        async with session_factory() as db:
            signature_request = SignatureRequest(
                token=generate_signature_token(),
                document_type=DocumentType.PROFORMA,
                document_id=seeded.document_id,
                empresa_id=seeded.empresa_id,
                signer_email="jane@client.test",
                signer_name=signer_name,
                status=status,
                expires_at=datetime.now(timezone.utc) + expires_in,
                requested_by=OWNER_ID,
            )
            db.add(signature_request)
            await db.commit()
            return signature_request

    return _make


@pytest.fixture
def owner_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': OWNER_ID})}"}


@pytest.fixture
def other_owner_headers():
    return {"Authorization": f"Bearer {create_access_token({'sub': OTHER_OWNER_ID})}"}


@pytest.fixture
def signature_data_url():
    """PNG data URI of a short hand-drawn stroke."""
    captured = []
    canvas = SignatureCanvas(captured.append, bounds=Bounds(0, 0, 300, 100))
    canvas.start_drawing(MouseInput(20, 50))
    canvas.draw(MouseInput(120, 30))
    canvas.draw(MouseInput(220, 70))
    canvas.stop_drawing()
    return captured[-1]

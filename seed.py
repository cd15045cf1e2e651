import asyncio
from datetime import date
from decimal import Decimal
from sqlalchemy import select
from app.core.db import AsyncSessionLocal
from app.core.security import create_access_token
from app.models.auth import User
from app.models.domain import Cliente, Document, DocumentLine, Empresa
from app.models.enums import DocumentType

DEMO_USER_ID = "00000000-0000-0000-0000-000000000001"


async def seed_database():
    async with AsyncSessionLocal() as db:
        print("🌱 Starting database seed...")

        result = await db.execute(select(User).where(User.id == DEMO_USER_ID))
        user = result.scalar_one_or_none()

        if user:
            print("  ⏭️  Demo company already exists")
        else:
            print("🏢 Creating demo company...")
            empresa = Empresa(nombre="Demo Contractors LLC", ruc="20123456789", email="owner@example.com")
            db.add(empresa)
            await db.flush()

            user = User(id=DEMO_USER_ID, email="owner@example.com", full_name="Demo Owner", empresa_id=empresa.id)
            cliente = Cliente(nombre="Jane Client", email="jane@example.com", empresa_id=empresa.id)
            db.add_all([user, cliente])
            await db.flush()

            proforma = Document(
                document_type=DocumentType.PROFORMA,
                serie="P001",
                numero="000001",
                fecha_emision=date.today(),
                subtotal=Decimal("1000.00"),
                igv=Decimal("180.00"),
                total=Decimal("1180.00"),
                empresa_id=empresa.id,
                cliente_id=cliente.id,
                detalles=[
                    DocumentLine(
                        descripcion="Kitchen remodel - labor",
                        cantidad=1,
                        precio_unitario=Decimal("1000.00"),
                        subtotal=Decimal("1000.00"),
                        igv=Decimal("180.00"),
                        total=Decimal("1180.00"),
                    )
                ],
            )
            db.add(proforma)
            await db.commit()
            print(f"  ✅ Created company {empresa.nombre} with proforma {proforma.number} (id={proforma.id})")

        print("\n🔐 Development access token (identity provider stand-in):")
        print(f"  {create_access_token({'sub': DEMO_USER_ID, 'email': user.email})}")

        print("\n✨ Database seeding completed!\n")


if __name__ == "__main__":
    asyncio.run(seed_database())

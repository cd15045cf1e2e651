from datetime import timedelta

from sqlalchemy import select

from app.models.enums import SignatureRequestStatus
from app.models.signature import Signature
from app.signing.compositor import compose_pdf
from app.signing.workflow import CONSENT_TEXT
from app.services.expiry import expire_stale_requests


def submission(token, signature_data_url, **overrides):
    body = {
        "token": token,
        "signatureDataUrl": signature_data_url,
        "signedPdfDataUrl": None,
        "consentGiven": True,
        "consentText": CONSENT_TEXT,
        "ipAddress": "203.0.113.9",
        "userAgent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
        "deviceType": "mobile",
    }
    body.update(overrides)
    return body


class TestCreateRequest:
    async def test_creates_pending_request(self, client, seeded, owner_headers):
        response = await client.post(
            "/signatures/request",
            json={
                "documentType": "PROFORMA",
                "documentId": seeded.document_id,
                "signerEmail": "jane@client.test",
                "signerName": "Jane Client",
            },
            headers=owner_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert len(body["token"]) == 64
        assert body["signingUrl"] == f"/sign/{body['token']}"

        status = await client.get(f"/signatures/status/{body['token']}")
        assert status.json()["status"] == "PENDING"
        assert status.json()["signature"] is None

    async def test_missing_fields(self, client, seeded, owner_headers):
        response = await client.post(
            "/signatures/request",
            json={"documentType": "PROFORMA", "documentId": seeded.document_id},
            headers=owner_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    async def test_invalid_document_type(self, client, seeded, owner_headers):
        response = await client.post(
            "/signatures/request",
            json={"documentType": "RECEIPT", "documentId": seeded.document_id, "signerEmail": "a@b.test"},
            headers=owner_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Invalid document type"}

    async def test_document_of_another_company_is_not_found(self, client, seeded, other_owner_headers):
        response = await client.post(
            "/signatures/request",
            json={"documentType": "PROFORMA", "documentId": seeded.document_id, "signerEmail": "a@b.test"},
            headers=other_owner_headers,
        )
        assert response.status_code == 404
        assert response.json() == {"error": "Document not found"}

    async def test_requires_authentication(self, client, seeded):
        response = await client.post(
            "/signatures/request",
            json={"documentType": "PROFORMA", "documentId": seeded.document_id, "signerEmail": "a@b.test"},
        )
        assert response.status_code in (401, 403)

    async def test_rejects_bad_token(self, client, seeded):
        response = await client.post(
            "/signatures/request",
            json={"documentType": "PROFORMA", "documentId": seeded.document_id, "signerEmail": "a@b.test"},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401
        assert response.json() == {"error": "Invalid token or token expired"}


class TestValidate:
    async def test_returns_document_to_sign(self, client, make_request):
        signature_request = await make_request()

        response = await client.get(f"/signatures/validate/{signature_request.token}")

        assert response.status_code == 200
        body = response.json()
        assert body["signatureRequest"]["documentType"] == "PROFORMA"
        assert body["signatureRequest"]["signerName"] == "Jane Client"
        assert body["empresa"] == {"nombre": "Acme Builders", "logoUrl": None, "email": "owner@acme.test"}
        assert body["document"]["serie"] == "P001"
        assert body["document"]["total"] == 118.0
        assert body["document"]["cliente"]["nombre"] == "Jane Client"
        assert body["document"]["detalles"][0]["precioUnitario"] == 100.0

        status = await client.get(f"/signatures/status/{signature_request.token}")
        assert status.json()["viewedAt"] is not None

    async def test_unknown_token(self, client, seeded):
        response = await client.get("/signatures/validate/does-not-exist")
        assert response.status_code == 404
        assert response.json() == {"error": "Invalid signature request"}

    async def test_expired_request_is_marked_expired(self, client, make_request):
        signature_request = await make_request(expires_in=timedelta(hours=-1))

        response = await client.get(f"/signatures/validate/{signature_request.token}")

        assert response.status_code == 400
        assert response.json() == {"error": "Signature request expired"}
        status = await client.get(f"/signatures/status/{signature_request.token}")
        assert status.json()["status"] == "EXPIRED"

    async def test_signed_request(self, client, make_request):
        signature_request = await make_request(status=SignatureRequestStatus.SIGNED)
        response = await client.get(f"/signatures/validate/{signature_request.token}")
        assert response.status_code == 400
        assert response.json() == {"error": "Document already signed"}

    async def test_cancelled_request(self, client, make_request):
        signature_request = await make_request(status=SignatureRequestStatus.CANCELLED)
        response = await client.get(f"/signatures/validate/{signature_request.token}")
        assert response.status_code == 400
        assert response.json() == {"error": "Signature request cancelled"}


class TestSubmit:
    async def test_submission_without_pdf_is_accepted(self, client, make_request, signature_data_url, session_factory):
        signature_request = await make_request()

        response = await client.post(
            "/signatures/submit", json=submission(signature_request.token, signature_data_url)
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["signature"]["signedPdfUrl"] is None

        async with session_factory() as db:
            signature = (await db.execute(select(Signature))).scalar_one()
        assert signature.signature_image_url == signature_data_url
        assert signature.consent_text == CONSENT_TEXT
        assert signature.ip_address == "203.0.113.9"
        assert signature.device_type == "mobile"
        assert signature.signer_name == "Jane Client"

        status = await client.get(f"/signatures/status/{signature_request.token}")
        assert status.json()["status"] == "SIGNED"
        assert status.json()["signature"]["id"] == body["signature"]["id"]

    async def test_token_is_single_use(self, client, make_request, signature_data_url):
        signature_request = await make_request()
        first = await client.post("/signatures/submit", json=submission(signature_request.token, signature_data_url))
        second = await client.post("/signatures/submit", json=submission(signature_request.token, signature_data_url))

        assert first.status_code == 200
        assert second.status_code == 400
        assert second.json() == {"error": "Signature request is not pending"}

    async def test_submission_with_composed_pdf(self, client, make_request, signature_data_url):
        signature_request = await make_request()
        validation = await client.get(f"/signatures/validate/{signature_request.token}")

        from app.schemas.signature import SignatureValidation
        from app.signing.preview import render_preview

        pdf = compose_pdf(render_preview(SignatureValidation.model_validate(validation.json())))
        response = await client.post(
            "/signatures/submit",
            json=submission(signature_request.token, signature_data_url, signedPdfDataUrl=pdf),
        )

        assert response.status_code == 200

    async def test_missing_consent(self, client, make_request, signature_data_url):
        signature_request = await make_request()
        response = await client.post(
            "/signatures/submit",
            json=submission(signature_request.token, signature_data_url, consentGiven=False),
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    async def test_missing_signature(self, client, make_request):
        signature_request = await make_request()
        response = await client.post("/signatures/submit", json=submission(signature_request.token, None))
        assert response.status_code == 400
        assert response.json() == {"error": "Missing required fields"}

    async def test_undecodable_signature(self, client, make_request):
        signature_request = await make_request()
        response = await client.post(
            "/signatures/submit",
            json=submission(signature_request.token, "data:image/png;base64,bm90IGFuIGltYWdl"),
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Failed to process signature")

    async def test_unreadable_pdf(self, client, make_request, signature_data_url):
        signature_request = await make_request()
        response = await client.post(
            "/signatures/submit",
            json=submission(
                signature_request.token,
                signature_data_url,
                signedPdfDataUrl="data:application/pdf;filename=generated.pdf;base64,bm90IGEgcGRm",
            ),
        )
        assert response.status_code == 400
        assert response.json()["error"].startswith("Failed to process signature")

    async def test_expired_request(self, client, make_request, signature_data_url):
        signature_request = await make_request(expires_in=timedelta(minutes=-5))
        response = await client.post("/signatures/submit", json=submission(signature_request.token, signature_data_url))
        assert response.status_code == 400
        assert response.json() == {"error": "Signature request expired"}
        status = await client.get(f"/signatures/status/{signature_request.token}")
        assert status.json()["status"] == "EXPIRED"

    async def test_unknown_token(self, client, seeded, signature_data_url):
        response = await client.post("/signatures/submit", json=submission("nope", signature_data_url))
        assert response.status_code == 404


class TestSendEmail:
    async def test_fails_when_email_is_not_configured(self, client, make_request, owner_headers):
        signature_request = await make_request()
        response = await client.post(
            f"/signatures/{signature_request.token}/send-email",
            json={"signerEmail": "jane@client.test"},
            headers=owner_headers,
        )
        assert response.status_code == 500
        assert response.json()["error"].startswith("Failed to send email")

    async def test_other_company_cannot_resend(self, client, make_request, other_owner_headers):
        signature_request = await make_request()
        response = await client.post(
            f"/signatures/{signature_request.token}/send-email",
            json={"signerEmail": "jane@client.test"},
            headers=other_owner_headers,
        )
        assert response.status_code == 404

    async def test_not_pending(self, client, make_request, owner_headers):
        signature_request = await make_request(status=SignatureRequestStatus.SIGNED)
        response = await client.post(
            f"/signatures/{signature_request.token}/send-email",
            json={"signerEmail": "jane@client.test"},
            headers=owner_headers,
        )
        assert response.status_code == 400
        assert response.json() == {"error": "Signature request is not pending"}


async def test_expiry_sweep(client, make_request, session_factory):
    stale = await make_request(expires_in=timedelta(days=-1))
    fresh = await make_request()

    async with session_factory() as db:
        count = await expire_stale_requests(db)

    assert count == 1
    assert (await client.get(f"/signatures/status/{stale.token}")).json()["status"] == "EXPIRED"
    assert (await client.get(f"/signatures/status/{fresh.token}")).json()["status"] == "PENDING"

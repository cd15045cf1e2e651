from app.models.auth import User
from app.models.domain import Empresa, Cliente, Document, DocumentLine
from app.models.signature import SignatureRequest, Signature

__all__ = [
    "User",
    "Empresa",
    "Cliente",
    "Document",
    "DocumentLine",
    "SignatureRequest",
    "Signature",
]

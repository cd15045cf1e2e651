from enum import Enum


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class DocumentType(str, Enum):
    INVOICE = "INVOICE"
    PROFORMA = "PROFORMA"


class SignatureRequestStatus(str, Enum):
    PENDING = "PENDING"
    SIGNED = "SIGNED"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"

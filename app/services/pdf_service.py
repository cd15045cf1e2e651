"""
PDF and image operations for the signature workflow.

Handles:
- Decoding signature images sent as data URIs
- Decoding and validating client-composed signed PDFs
"""
import base64
import binascii
import io
from PIL import Image, UnidentifiedImageError
from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError


class PDFServiceError(Exception):
    """Base exception for PDF service errors"""
    pass


class PDFService:
    """Service for PDF operations"""

    @staticmethod
    def strip_data_uri(data: str) -> bytes:
        """
        Decode base64 content with or without a data URI prefix.

        Handles prefixes carrying extra parameters, e.g.
        "data:application/pdf;filename=generated.pdf;base64,".

        Raises:
            PDFServiceError: If the payload is not valid base64
        """
        if "base64," in data:
            data = data.split("base64,", 1)[1]
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as e:
            raise PDFServiceError(f"Invalid base64 payload: {e}")

    @staticmethod
    def decode_signature(signature_data: str) -> tuple[Image.Image, bytes]:
        """
        Decode base64 signature data to PIL Image.

        Args:
            signature_data: Base64 encoded image string (with or without data URI prefix)

        Returns:
            Tuple of (PIL Image, raw PNG bytes)

        Raises:
            PDFServiceError: If signature data is invalid or the image is blank
        """
        signature_bytes = PDFService.strip_data_uri(signature_data)
        try:
            signature_image = Image.open(io.BytesIO(signature_bytes))
            signature_image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise PDFServiceError(f"Failed to decode signature data: {str(e)}")

        # A fully transparent canvas has no bounding box
        if signature_image.mode in ("RGBA", "LA") and signature_image.getbbox() is None:
            raise PDFServiceError("Signature image is empty")

        return signature_image, signature_bytes

    @staticmethod
    def decode_signed_pdf(pdf_data: str) -> bytes:
        """
        Decode a client-composed PDF and check it parses with at least one page.

        Raises:
            PDFServiceError: If the PDF is not readable
        """
        pdf_bytes = PDFService.strip_data_uri(pdf_data)
        try:
            reader = PdfReader(io.BytesIO(pdf_bytes))
            page_count = len(reader.pages)
        except (PdfReadError, ValueError, OSError) as e:
            raise PDFServiceError(f"Failed to read signed PDF: {str(e)}")

        if page_count == 0:
            raise PDFServiceError("Signed PDF has no pages")

        return pdf_bytes


# Create singleton instance
pdf_service = PDFService()

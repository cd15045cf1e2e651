"""
Client-side composition of the signed document into a single-page A4 PDF.
"""
import base64
import io
import logging
from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from app.signing.preview import RenderTarget

logger = logging.getLogger(__name__)

RASTER_SCALE = 1.5
JPEG_QUALITY = 85
PDF_DATA_URI_PREFIX = "data:application/pdf;filename=generated.pdf;base64,"


class CompositorError(Exception):
    """Raised when the preview cannot be turned into a PDF"""
    pass


def fit_to_page(image_width: float, image_height: float, page_width: float, page_height: float) -> tuple[float, float, float, float]:
    """
    Uniformly scale an image onto a page, centered horizontally and anchored to the top.

    Returns:
        (x, y, width, height) in page coordinates with a top-left origin
    """
    ratio = min(page_width / image_width, page_height / image_height)
    width = image_width * ratio
    height = image_height * ratio
    return (page_width - width) / 2, 0.0, width, height


def compose_pdf(target: RenderTarget) -> str:
    """
    Rasterize `target` and embed it as the only content of a compressed A4 PDF.

    Returns:
        The PDF as a data URI

    Raises:
        CompositorError: If rasterization or encoding fails
    """
    try:
        bitmap = target.rasterize(RASTER_SCALE)

        jpeg = io.BytesIO()
        bitmap.convert("RGB").save(jpeg, format="JPEG", quality=JPEG_QUALITY)
        jpeg.seek(0)

        page_width, page_height = A4
        x, top, width, height = fit_to_page(bitmap.width, bitmap.height, page_width, page_height)

        packet = io.BytesIO()
        pdf = canvas.Canvas(packet, pagesize=A4, pageCompression=1)
        # reportlab measures y from the bottom of the page
        pdf.drawImage(ImageReader(jpeg), x, page_height - top - height, width=width, height=height)
        pdf.showPage()
        pdf.save()
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise CompositorError(f"Failed to compose signed PDF: {e}")

    pdf_bytes = packet.getvalue()
    logger.info(f"Composed signed PDF ({len(pdf_bytes)} bytes from {bitmap.width}x{bitmap.height} bitmap)")
    return PDF_DATA_URI_PREFIX + base64.b64encode(pdf_bytes).decode("ascii")

"""
Document preview: a pure mapping from validated document data (plus an optional
signature overlay) to a laid-out visual tree that can be rasterized off-screen.
"""
import base64
import io
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Protocol
from PIL import Image, ImageDraw, ImageFont
from app.schemas.signature import SignatureValidation

# A4 width at 96 dpi
PAGE_WIDTH = 794
PADDING = 48

TEXT = (17, 24, 39)
MUTED = (107, 114, 128)
RULE = (209, 213, 219)


class RenderTarget(Protocol):
    """Anything the PDF compositor can rasterize."""

    def rasterize(self, scale: float) -> Image.Image:
        ...


@dataclass(frozen=True)
class SignatureOverlay:
    image_data_url: str
    signer_name: str
    signed_at: datetime


def _font(size: float) -> ImageFont.ImageFont:
    return ImageFont.load_default(size=size)


@dataclass(frozen=True)
class TextBlock:
    text: str
    size: int = 12
    color: tuple = TEXT
    align: str = "left"

    @property
    def height(self) -> float:
        return self.size * 1.5

    def draw(self, image: Image.Image, x: float, y: float, width: float, scale: float) -> None:
        draw = ImageDraw.Draw(image)
        font = _font(self.size * scale)
        if self.align == "right":
            text_width = draw.textlength(self.text, font=font)
            x = x + width * scale - text_width
        draw.text((x, y), self.text, fill=self.color, font=font)


@dataclass(frozen=True)
class RowBlock:
    """Table row; `columns` are fractions of the content width, numbers right-aligned."""
    cells: tuple[str, ...]
    columns: tuple[float, ...]
    size: int = 11
    color: tuple = TEXT

    @property
    def height(self) -> float:
        return self.size * 1.8

    def draw(self, image: Image.Image, x: float, y: float, width: float, scale: float) -> None:
        draw = ImageDraw.Draw(image)
        font = _font(self.size * scale)
        cursor = x
        for index, (cell, fraction) in enumerate(zip(self.cells, self.columns)):
            cell_width = width * fraction * scale
            if index == 0:
                draw.text((cursor, y), cell, fill=self.color, font=font)
            else:
                text_width = draw.textlength(cell, font=font)
                draw.text((cursor + cell_width - text_width, y), cell, fill=self.color, font=font)
            cursor += cell_width


@dataclass(frozen=True)
class RuleBlock:
    thickness: int = 1

    @property
    def height(self) -> float:
        return 12

    def draw(self, image: Image.Image, x: float, y: float, width: float, scale: float) -> None:
        draw = ImageDraw.Draw(image)
        middle = y + 6 * scale
        draw.line([(x, middle), (x + width * scale, middle)], fill=RULE, width=max(1, round(self.thickness * scale)))


@dataclass(frozen=True)
class SpacerBlock:
    height: float = 16

    def draw(self, image: Image.Image, x: float, y: float, width: float, scale: float) -> None:
        pass


@dataclass(frozen=True)
class ImageBlock:
    """Embedded image given as a data URI, decoded when drawn."""
    data_url: str
    width: float
    height: float

    def draw(self, image: Image.Image, x: float, y: float, width: float, scale: float) -> None:
        size = (max(1, round(self.width * scale)), max(1, round(self.height * scale)))
        resized = decode_image_data_url(self.data_url).convert("RGBA").resize(size)
        image.paste(resized, (round(x), round(y)), resized)


@dataclass
class PreviewTree:
    blocks: list = field(default_factory=list)
    width: float = PAGE_WIDTH
    padding: float = PADDING

    @property
    def height(self) -> float:
        return self.padding * 2 + sum(block.height for block in self.blocks)

    def rasterize(self, scale: float) -> Image.Image:
        size = (round(self.width * scale), round(self.height * scale))
        image = Image.new("RGB", size, (255, 255, 255))
        content_width = self.width - self.padding * 2
        y = self.padding * scale
        for block in self.blocks:
            block.draw(image, self.padding * scale, y, content_width, scale)
            y += block.height * scale
        return image


def decode_image_data_url(data_url: str) -> Image.Image:
    payload = data_url.split("base64,", 1)[-1]
    image = Image.open(io.BytesIO(base64.b64decode(payload)))
    image.load()
    return image


def _money(amount: float) -> str:
    return f"{amount:,.2f}"


def render_preview(data: SignatureValidation, signature: Optional[SignatureOverlay] = None) -> PreviewTree:
    """Lay out the document the way it will appear in the signed PDF."""
    document = data.document
    label = "Invoice" if data.signature_request.document_type == "INVOICE" else "Proposal"
    columns = (0.55, 0.1, 0.15, 0.2)

    blocks = [
        TextBlock(data.empresa.nombre, size=20),
    ]
    if data.empresa.email:
        blocks.append(TextBlock(data.empresa.email, size=11, color=MUTED))
    blocks += [
        SpacerBlock(12),
        TextBlock(f"{label} {document.serie}-{document.numero}", size=16, align="right"),
        TextBlock(f"Date: {document.fecha_emision.isoformat()}", size=11, color=MUTED, align="right"),
        RuleBlock(),
        TextBlock(f"Client: {document.cliente.nombre}", size=12),
    ]
    if document.cliente.numero_documento:
        blocks.append(TextBlock(f"Document: {document.cliente.numero_documento}", size=11, color=MUTED))
    if document.cliente.direccion:
        blocks.append(TextBlock(document.cliente.direccion, size=11, color=MUTED))

    blocks += [
        SpacerBlock(12),
        RowBlock(("Description", "Qty", "Unit price", "Total"), columns, color=MUTED),
        RuleBlock(),
    ]
    for line in document.detalles:
        blocks.append(RowBlock(
            (line.descripcion, str(line.cantidad), _money(line.precio_unitario), _money(line.total)),
            columns,
        ))
    blocks += [
        RuleBlock(),
        TextBlock(f"Subtotal: {_money(document.subtotal)}", size=11, align="right"),
        TextBlock(f"Tax: {_money(document.igv)}", size=11, align="right"),
        TextBlock(f"Total: {_money(document.total)}", size=14, align="right"),
        SpacerBlock(32),
    ]

    if signature is not None:
        blocks += [
            ImageBlock(signature.image_data_url, width=240, height=80),
            RuleBlock(),
            TextBlock(f"Signed by {signature.signer_name}", size=11),
            TextBlock(f"Signed on {signature.signed_at.strftime('%Y-%m-%d %H:%M')}", size=10, color=MUTED),
        ]

    return PreviewTree(blocks=blocks)

import base64
import io

import pytest
from PIL import Image
from PyPDF2 import PdfReader
from reportlab.lib.pagesizes import A4

from app.signing.compositor import PDF_DATA_URI_PREFIX, CompositorError, compose_pdf, fit_to_page
from app.signing.preview import ImageBlock, PreviewTree, TextBlock


class TestFitToPage:
    def test_tall_image_is_limited_by_height(self):
        x, y, width, height = fit_to_page(100, 400, 200, 200)
        assert (x, y, width, height) == (75.0, 0.0, 50.0, 200.0)

    def test_wide_image_is_limited_by_width_and_top_anchored(self):
        x, y, width, height = fit_to_page(400, 100, 200, 200)
        assert (x, y, width, height) == (0.0, 0.0, 200.0, 50.0)


class SolidTarget:
    def __init__(self, size):
        self.size = size
        self.scales = []

    def rasterize(self, scale):
        self.scales.append(scale)
        return Image.new("RGB", self.size, (240, 240, 240))


def read_pdf(data_uri):
    assert data_uri.startswith(PDF_DATA_URI_PREFIX)
    return PdfReader(io.BytesIO(base64.b64decode(data_uri[len(PDF_DATA_URI_PREFIX):])))


def test_composes_single_a4_page():
    target = SolidTarget((1191, 1500))

    reader = read_pdf(compose_pdf(target))

    assert len(reader.pages) == 1
    page = reader.pages[0]
    assert float(page.mediabox.width) == pytest.approx(A4[0])
    assert float(page.mediabox.height) == pytest.approx(A4[1])
    assert target.scales == [1.5]


def test_composes_preview_tree():
    tree = PreviewTree(blocks=[TextBlock("Acme Builders", size=20), TextBlock("Total: 118.00")])
    assert len(read_pdf(compose_pdf(tree)).pages) == 1


def test_broken_image_raises_compositor_error():
    tree = PreviewTree(blocks=[ImageBlock("data:image/png;base64,bm90IGFuIGltYWdl", width=100, height=40)])

    with pytest.raises(CompositorError):
        compose_pdf(tree)

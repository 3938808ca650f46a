# services/api/core/compositor.py

from __future__ import annotations

import io
import logging
from typing import Tuple

import pypdfium2 as pdfium
from PIL import Image

from core.errors import DocumentLoadError, ImageDecodeError, InternalError
from models.placement import DrawRect, PlacementField, resolve

logger = logging.getLogger(__name__)

# The only raster format accepted for signatures. Anything else is a decode
# failure, never an implicit conversion.
SUPPORTED_IMAGE_FORMAT = "PNG"


# ---------- Public API -------------------------------------------------------

def compose(
    document: bytes,
    page_index: int,
    field: PlacementField,
    image_bytes: bytes,
) -> bytes:
    """
    Burn a signature image into one page of a PDF and return the new PDF bytes.

    Args:
        document:    Source PDF bytes (read-only, never mutated).
        page_index:  0-based target page.
        field:       Percentage-based placement (top-left origin).
        image_bytes: PNG bytes of the signature.

    Returns:
        A complete, independently loadable PDF with exactly one extra image
        object on `page_index`.

    Raises:
        DocumentLoadError: bytes are not a PDF, or page_index is out of range.
        ImageDecodeError:  image_bytes are not a decodable PNG.
        InvalidField:      the placement box is malformed.
        InternalError:     embedding or serialisation failed.
    """
    pdf = _open_document(document)
    page = None
    try:
        n_pages = len(pdf)
        if not (0 <= page_index < n_pages):
            raise DocumentLoadError(
                f"Page {page_index + 1} out of range (document has {n_pages} pages)"
            )

        page = pdf[page_index]
        origin, (page_w, page_h) = _page_geometry(page)

        sig = _decode_image(image_bytes)
        img_w, img_h = sig.size
        rect = resolve(field, page_w, page_h, img_w, img_h)

        _embed_image(pdf, page, sig, rect, origin)
        out = _serialize(pdf)

        logger.info(
            f"Composed signature on page {page_index + 1}/{n_pages} "
            f"at ({rect.x:.2f}, {rect.y:.2f}) size {rect.width:.2f}x{rect.height:.2f}"
        )
        return out
    finally:
        if page is not None:
            page.close()
        pdf.close()


# ---------- Internals --------------------------------------------------------

def _open_document(document: bytes) -> pdfium.PdfDocument:
    if not isinstance(document, (bytes, bytearray)) or not document:
        raise DocumentLoadError("Document is empty or not bytes")
    try:
        # pdfium reads lazily from this buffer for the document's lifetime
        return pdfium.PdfDocument(bytes(document))
    except pdfium.PdfiumError as e:
        raise DocumentLoadError(f"Not a valid PDF document: {e}") from e


def _page_geometry(page: pdfium.PdfPage) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """
    Return ((left, bottom), (width, height)) of the page's MediaBox in points.
    Rotation is ignored: placement happens in unrotated user space.
    """
    left, bottom, right, top = page.get_mediabox()
    width = right - left
    height = top - bottom
    if width <= 0 or height <= 0:
        raise DocumentLoadError(f"Page has a degenerate MediaBox: {width} x {height}")
    return (left, bottom), (width, height)


def _decode_image(image_bytes: bytes) -> Image.Image:
    """Decode PNG bytes into a PIL image in a mode pdfium accepts (RGB/RGBA)."""
    if not image_bytes:
        raise ImageDecodeError("Signature image is empty")
    try:
        img = Image.open(io.BytesIO(image_bytes))
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Could not decode signature image: {e}") from e

    if img.format != SUPPORTED_IMAGE_FORMAT:
        raise ImageDecodeError(
            f"Unsupported image format {img.format or 'unknown'}; "
            f"only {SUPPORTED_IMAGE_FORMAT} is accepted"
        )

    try:
        img.load()
    except (OSError, SyntaxError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Could not decode signature image: {e}") from e

    w, h = img.size
    if w <= 0 or h <= 0:
        raise ImageDecodeError(f"Signature image has no pixels ({w}x{h})")

    has_alpha = "A" in img.getbands() or "transparency" in img.info
    return img.convert("RGBA" if has_alpha else "RGB")


def _embed_image(
    pdf: pdfium.PdfDocument,
    page: pdfium.PdfPage,
    sig: Image.Image,
    rect: DrawRect,
    origin: Tuple[float, float],
) -> None:
    """
    Insert `sig` as an axis-aligned image object filling `rect`.
    An image object occupies the unit square, so the matrix scales it to the
    draw size and then moves it to the draw origin.
    """
    left, bottom = origin
    try:
        image = pdfium.PdfImage.new(pdf)
        bitmap = pdfium.PdfBitmap.from_pil(sig)
        try:
            image.set_bitmap(bitmap, pages=[page])
        finally:
            bitmap.close()

        matrix = pdfium.PdfMatrix().scale(rect.width, rect.height).translate(
            left + rect.x, bottom + rect.y
        )
        image.set_matrix(matrix)

        page.insert_obj(image)
        page.gen_content()
    except pdfium.PdfiumError as e:
        raise InternalError(f"Failed to embed signature image: {e}") from e


def _serialize(pdf: pdfium.PdfDocument) -> bytes:
    buf = io.BytesIO()
    try:
        pdf.save(buf)
    except pdfium.PdfiumError as e:
        raise InternalError(f"Failed to serialize signed document: {e}") from e
    return buf.getvalue()

"""Barcode and QR code drawings for vehicle labels."""

from urllib.parse import urlencode

from reportlab.graphics import renderSVG
from reportlab.graphics.barcode import createBarcodeDrawing

from .exceptions import CodeGenerationError

PUBLIC_FORM_PATH = "/public"


def public_form_url(base_url: str, barcode: str) -> str:
    """URL of the public report form with the vehicle's barcode pre-filled."""
    return f"{base_url.rstrip('/')}{PUBLIC_FORM_PATH}?{urlencode({'barcode': barcode})}"


def barcode_svg(value: str, bar_height: float = 72, bar_width: float = 1.2) -> str:
    """Code128 barcode for a value, with the value printed underneath."""
    if not value:
        raise CodeGenerationError("Cannot draw a barcode for an empty value")
    try:
        drawing = createBarcodeDrawing(
            "Code128",
            value=value,
            barHeight=bar_height,
            barWidth=bar_width,
            humanReadable=True,
        )
    except (ValueError, TypeError) as e:
        raise CodeGenerationError(f"Cannot draw barcode for {value!r}: {e}") from e
    return renderSVG.drawToString(drawing)


def qr_svg(payload: str, size: float = 200) -> str:
    """Square QR code encoding an arbitrary string (normally a form URL)."""
    if not payload:
        raise CodeGenerationError("Cannot draw a QR code for an empty payload")
    try:
        drawing = createBarcodeDrawing("QR", value=payload, width=size, height=size)
    except (ValueError, TypeError) as e:
        raise CodeGenerationError(f"Cannot draw QR code: {e}") from e
    return renderSVG.drawToString(drawing)


def vehicle_qr_svg(base_url: str, barcode: str, size: float = 200) -> str:
    """QR code that opens the public report form for one vehicle."""
    return qr_svg(public_form_url(base_url, barcode), size=size)


def inline_svg(svg: str) -> str:
    """Drop the XML declaration and doctype so the SVG can sit inside HTML."""
    start = svg.find("<svg")
    return svg[start:] if start >= 0 else svg

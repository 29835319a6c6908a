"""QR code rendering for provisioning URIs."""

from __future__ import annotations

from io import BytesIO

import qrcode


def render_qr_png(uri: str) -> bytes:
    """Render *uri* as a PNG QR code and return the image bytes."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")
    buffer = BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


__all__: list[str] = ["render_qr_png"]

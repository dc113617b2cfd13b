"""QR code rendering for provisioning URIs (encode only, no image decoding)."""

import base64
import io

import qrcode


def qr_code_data_uri(uri: str, box_size: int = 10, border: int = 4) -> str:
    """Render `uri` as a PNG QR code and return it as a data: URI."""
    qr = qrcode.QRCode(version=None, box_size=box_size, border=border)
    qr.add_data(uri)
    qr.make(fit=True)

    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    img_str = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/png;base64,{img_str}"

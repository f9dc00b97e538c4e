from io import BytesIO

import qrcode
from PIL import Image
from qrcode.constants import ERROR_CORRECT_H

QR_SIZE = 512


def generate_qr_png(data: str, size: int = QR_SIZE) -> bytes:
    """PNG bytes of a high error-correction QR code, `size` pixels square."""
    qr = qrcode.QRCode(
        version=1, box_size=10, border=4,
        error_correction=ERROR_CORRECT_H
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white").get_image()
    img = img.convert("RGB").resize((size, size), Image.NEAREST)

    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()

"""
QR codes for restaurant check-in.

The code encodes "<FRONTEND_URL>?restaurant_id=<id>"; the customer app reads
the id and opens a dining session. Stored as an SVG data URI so no image
library is needed.
"""
import base64
import io

import qrcode
import qrcode.image.svg

from dabil.config import settings


def check_in_url(restaurant_id: str) -> str:
    return f"{settings.FRONTEND_URL}?restaurant_id={restaurant_id}"


def generate_check_in_qr(restaurant_id: str) -> str:
    qr = qrcode.QRCode(border=2, box_size=10, image_factory=qrcode.image.svg.SvgPathImage)
    qr.add_data(check_in_url(restaurant_id))
    qr.make(fit=True)

    buffer = io.BytesIO()
    qr.make_image().save(buffer)
    encoded = base64.b64encode(buffer.getvalue()).decode("ascii")
    return f"data:image/svg+xml;base64,{encoded}"

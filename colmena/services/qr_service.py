"""
QR Service
Renders visit tokens as QR code images
"""
import io
import logging

import qrcode

from colmena.core.config import settings

logger = logging.getLogger(__name__)


class QRService:
    def __init__(self):
        self.box_size = settings.qr_box_size
        self.border = settings.qr_border

    def generate_qr_code_image(self, data: str) -> bytes:
        """Generate QR code image as PNG bytes"""
        qr = qrcode.QRCode(
            version=None,
            error_correction=qrcode.constants.ERROR_CORRECT_M,
            box_size=self.box_size,
            border=self.border,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")
        img_bytes = io.BytesIO()
        img.save(img_bytes, format='PNG')
        logger.debug(f"Rendered QR image ({img_bytes.tell()} bytes)")
        return img_bytes.getvalue()


# Global QR service instance
qr_service = QRService()

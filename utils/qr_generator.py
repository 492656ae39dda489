import io
import os
import re

import qrcode
from qrcode.constants import ERROR_CORRECT_H, ERROR_CORRECT_L, ERROR_CORRECT_M, ERROR_CORRECT_Q
from qrcode.exceptions import DataOverflowError
from PIL import Image, ImageDraw, ImageFont


ERROR_CORRECTION_LEVELS = {
    "L": ERROR_CORRECT_L,
    "M": ERROR_CORRECT_M,
    "Q": ERROR_CORRECT_Q,
    "H": ERROR_CORRECT_H,
}

LABEL_PADDING = 14


class CodeCapacityExceeded(ValueError):
    """The text does not fit in the largest QR version at the chosen level."""


class QRCodeRenderer:
    """A single QR code drawn into a display container.

    The renderer draws once when constructed and again on every
    :meth:`set_content` call; the instance itself is kept for the whole
    session. *container* is anything with an ``image(data, width=...)``
    method (a Streamlit placeholder, for instance) or ``None`` when the
    image is only consumed through :meth:`to_png`.

    Text too large for a QR code raises :class:`CodeCapacityExceeded` and
    leaves the previous content in place.
    """

    def __init__(
        self,
        container,
        text: str,
        width: int = 256,
        height: int = 256,
        color_dark: str = "#000000",
        color_light: str = "#ffffff",
        error_correction: str = "H",
    ):
        if error_correction not in ERROR_CORRECTION_LEVELS:
            raise ValueError(f"Unknown error correction level: {error_correction!r}")
        self.container = container
        self.width = int(width)
        self.height = int(height)
        self.color_dark = color_dark
        self.color_light = color_light
        self.error_correction = error_correction
        self.text = ""
        self.image = None
        self.set_content(text)

    def set_content(self, text: str) -> None:
        image = self._make_image(text)
        self.text = text
        self.image = image
        self.draw()

    def _make_image(self, text: str) -> Image.Image:
        qr = qrcode.QRCode(
            box_size=10,
            border=4,
            error_correction=ERROR_CORRECTION_LEVELS[self.error_correction],
        )
        qr.add_data(text)
        try:
            qr.make(fit=True)
        except (DataOverflowError, ValueError) as exc:
            # Older qrcode releases report overflow as "Invalid version (was 41)".
            raise CodeCapacityExceeded(
                f"{len(text)} characters do not fit in a QR code at level {self.error_correction}"
            ) from exc

        img = qr.make_image(fill_color=self.color_dark, back_color=self.color_light).convert("RGB")
        return img.resize((self.width, self.height), Image.NEAREST)

    def draw(self, container=None) -> None:
        if container is not None:
            self.container = container
        if self.container is None or self.image is None:
            return
        self.container.image(self.to_png(), width=self.width)

    def to_png(self) -> bytes:
        buf = io.BytesIO()
        self.image.save(buf, format="PNG")
        return buf.getvalue()


def add_label(qr_img: Image.Image, label: str) -> Image.Image:
    """Return a copy of *qr_img* with *label* centred underneath it."""
    font = ImageFont.load_default()
    text = label.strip()
    left, top, right, bottom = ImageDraw.Draw(qr_img).textbbox((0, 0), text, font=font)
    text_w, text_h = right - left, bottom - top

    width = max(qr_img.width, text_w + 2 * LABEL_PADDING)
    labelled = Image.new("RGB", (width, qr_img.height + text_h + 2 * LABEL_PADDING), "white")
    labelled.paste(qr_img, ((width - qr_img.width) // 2, 0))
    ImageDraw.Draw(labelled).text(
        ((width - text_w) // 2, qr_img.height + LABEL_PADDING),
        text,
        fill="black",
        font=font,
    )
    return labelled


def label_filename(label: str, suffix: str = "") -> str:
    """Turn a human label such as ``Lat: 1.5, Lng: 2`` into a file name stem."""
    stem = re.sub(r"[^a-z0-9]+", "_", (label or "").lower()).strip("_")[:60].rstrip("_")
    stem = stem or "location"
    return f"{stem}_{suffix}" if suffix else stem


def generate_qr(data: str, filename: str, label: str = "", directory: str = "qr_codes") -> str:
    """Generate a QR code image from *data* and save it under *filename*.

    The file is written to *directory* (created if it doesn't exist) and the
    path of the saved PNG is returned.
    """
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(directory, f"{filename}.png")

    qr_img = QRCodeRenderer(None, data).image
    if label:
        qr_img = add_label(qr_img, label)
    qr_img.save(path)
    return path

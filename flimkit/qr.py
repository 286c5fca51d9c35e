from __future__ import annotations

from pathlib import Path

HALF_BLOCKS = {
    (True, True): "█",
    (True, False): "▀",
    (False, True): "▄",
    (False, False): " ",
}


class QrError(RuntimeError):
    pass


def _import_qrcode():
    try:
        import qrcode
    except ImportError as e:
        raise QrError(
            "QR code output requires the 'qrcode' package.\n"
            "  Install with: pip install qrcode[pil]\n"
            "  The public URL is printed either way."
        ) from e
    return qrcode


def write_qr_png(*, data: str, out_path: Path) -> None:
    """
    Writes a QR code PNG for the given string.
    """
    qrcode = _import_qrcode()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    qr = qrcode.QRCode(
        version=None,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    img.save(out_path)


def render_qr_ascii(data: str) -> str:
    """
    Returns a QR code drawn with half-block characters, for opening the
    public URL on a phone straight from the terminal.
    """
    qrcode = _import_qrcode()
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=1)
    qr.add_data(data)
    qr.make(fit=True)
    matrix = qr.get_matrix()
    if len(matrix) % 2:
        matrix.append([False] * len(matrix[0]))
    # Each terminal line packs an upper and a lower module row.
    return "\n".join(
        "".join(HALF_BLOCKS[bool(upper), bool(lower)] for upper, lower in zip(top, bottom))
        for top, bottom in zip(matrix[0::2], matrix[1::2])
    )

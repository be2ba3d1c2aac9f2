import base64

BMP_MIME = "image/bmp"


def encode_base64(data: bytes) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def bmp_data_uri(data: bytes) -> str:
    """Embed a BMP file as a data URI usable as an <img> source."""
    return f"data:{BMP_MIME};base64,{encode_base64(data)}"

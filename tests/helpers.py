import io


def image_upload(data=b'\x89PNG\r\n\x1a\nfake', filename='cat.png', mime='image/png', **fields):
    """Multipart payload for POST /upload."""
    payload = {'file': (io.BytesIO(data), filename, mime)}
    payload.update(fields)
    return payload

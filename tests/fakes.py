"""Test stand-ins: frame extractors and request bodies."""
import asyncio

from app.core.exceptions import ExtractionError

FAKE_FRAME = b"\xff\xd8\xff\xe0fake-jpeg-frame"


class WorkingExtractor:
    """Writes a fixed frame and records every call."""

    def __init__(self):
        self.calls = []

    async def extract_frame(self, source, offset, destination):
        self.calls.append((source, offset, destination))
        destination.write_bytes(FAKE_FRAME)


class UnavailableExtractor:
    """Behaves like a host without ffmpeg."""

    def __init__(self):
        self.calls = []

    async def extract_frame(self, source, offset, destination):
        self.calls.append((source, offset, destination))
        raise ExtractionError("ffmpeg could not be started", cause=FileNotFoundError("ffmpeg"))


class PartialOutputExtractor:
    """Leaves a truncated file behind and then fails."""

    async def extract_frame(self, source, offset, destination):
        destination.write_bytes(b"\xff\xd8")
        raise ExtractionError("ffmpeg exited with 1: truncated")


class HangingExtractor:
    """Writes the start of a frame, then blocks until cancelled."""

    def __init__(self):
        self.started = asyncio.Event()

    async def extract_frame(self, source, offset, destination):
        destination.write_bytes(b"\xff\xd8")
        self.started.set()
        await asyncio.Event().wait()


# Request bodies

BOUNDARY = "minitube-test-boundary"
MULTIPART_CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def file_part_header(name="file", filename="clip.mp4"):
    return (
        f"--{BOUNDARY}\r\n"
        f'Content-Disposition: form-data; name="{name}"; filename="{filename}"\r\n'
        "Content-Type: application/octet-stream\r\n\r\n"
    ).encode()


def multipart_body(fields=(), files=()):
    """Encode (name, value) text fields and (name, filename, content) file parts."""
    body = b""
    for name, value in fields:
        body += f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
    for name, filename, content in files:
        body += file_part_header(name, filename) + content + b"\r\n"
    return body + f"--{BOUNDARY}--\r\n".encode()


async def body_stream(body, chunk_size=64 * 1024):
    for i in range(0, len(body), chunk_size):
        yield body[i:i + chunk_size]

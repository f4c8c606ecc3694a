"""Streaming multipart/form-data parsing for video uploads.

The file part is written to storage as the body arrives, so the size cap
is enforced before the rest of the request has been read.
"""
import logging
from dataclasses import dataclass, field
from typing import AsyncIterable, BinaryIO

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from app.core.exceptions import PayloadTooLargeError, ValidationError
from app.services.cleanup_service import rollback_staged
from app.services.storage_service import LocalStorage, generate_name

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass
class StreamedForm:
    fields: dict[str, str] = field(default_factory=dict)
    # storage name of the staged file part
    file_name: str | None = None

    def get(self, key: str) -> str | None:
        return self.fields.get(key)


class UploadFormParser:
    """Parse one multipart body, staging the `file_field` part on the fly.

    Only the first file part under `file_field` is kept; other file parts
    are read and dropped. Text fields keep their first value.
    """

    def __init__(
        self,
        storage: LocalStorage,
        *,
        file_field: str = "file",
        max_file_bytes: int | None = None,
        max_field_bytes: int = MB,
    ):
        self.storage = storage
        self.file_field = file_field
        self.max_file_bytes = max_file_bytes
        self.max_field_bytes = max_field_bytes
        self.form = StreamedForm()
        self._charset = "utf-8"
        self._header_field = b""
        self._header_value = b""
        self._headers: dict[bytes, bytes] = {}
        self._field_name = ""
        self._field_data = bytearray()
        self._skip = False
        self._out: BinaryIO | None = None
        self._written = 0

    # python-multipart callbacks

    def on_part_begin(self) -> None:
        self._headers = {}
        self._field_name = ""
        self._field_data = bytearray()
        self._skip = False

    def on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def on_header_end(self) -> None:
        self._headers[self._header_field.lower()] = self._header_value
        self._header_field = b""
        self._header_value = b""

    def on_headers_finished(self) -> None:
        _, options = parse_options_header(self._headers.get(b"content-disposition", b""))
        if b"name" not in options:
            raise ValidationError("malformed multipart body: part without a field name")
        self._field_name = options[b"name"].decode(self._charset, errors="replace")
        if b"filename" not in options:
            return
        if self._field_name != self.file_field or self.form.file_name is not None:
            self._skip = True
            return
        client_filename = options[b"filename"].decode(self._charset, errors="replace")
        name = generate_name(client_filename)
        self._out = open(self.storage.path_for(name), "wb")
        self.form.file_name = name
        self._written = 0

    def on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._skip:
            return
        chunk = data[start:end]
        if self._out is not None:
            self._written += len(chunk)
            if self.max_file_bytes is not None and self._written > self.max_file_bytes:
                raise PayloadTooLargeError(f"file too large (max {self.max_file_bytes // MB}MB)")
            self._out.write(chunk)
            return
        self._field_data += chunk
        if len(self._field_data) > self.max_field_bytes:
            raise PayloadTooLargeError(f"form field {self._field_name!r} too large (max {self.max_field_bytes // MB}MB)")

    def on_part_end(self) -> None:
        if self._skip:
            return
        if self._out is not None:
            self._out.close()
            self._out = None
            return
        self.form.fields.setdefault(self._field_name, self._field_data.decode(self._charset, errors="replace"))

    # driver

    def discard(self) -> None:
        """Close and remove a staged file part, if any."""
        if self._out is not None:
            self._out.close()
            self._out = None
        if self.form.file_name:
            rollback_staged(self.storage, self.form.file_name)
            logger.info("Discarded partial upload %s after %d bytes", self.form.file_name, self._written)
            self.form.file_name = None

    async def parse(self, content_type: str, stream: AsyncIterable[bytes]) -> StreamedForm:
        """Consume the body. Anything but multipart/form-data yields an empty form."""
        ctype, params = parse_options_header(content_type)
        boundary = params.get(b"boundary")
        if ctype.lower() != b"multipart/form-data" or not boundary:
            return self.form
        self._charset = params.get(b"charset", b"utf-8").decode("latin-1")

        parser = MultipartParser(
            boundary,
            {
                "on_part_begin": self.on_part_begin,
                "on_part_data": self.on_part_data,
                "on_part_end": self.on_part_end,
                "on_header_field": self.on_header_field,
                "on_header_value": self.on_header_value,
                "on_header_end": self.on_header_end,
                "on_headers_finished": self.on_headers_finished,
            },
        )
        try:
            async for chunk in stream:
                if chunk:
                    parser.write(chunk)
            parser.finalize()
            if self._out is not None:
                raise ValidationError("malformed multipart body: file part was cut off")
        except MultipartParseError as e:
            self.discard()
            raise ValidationError(f"malformed multipart body: {e}") from e
        except BaseException:
            self.discard()
            raise
        return self.form

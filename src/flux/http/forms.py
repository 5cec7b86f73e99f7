"""Request form parsing.

``application/x-www-form-urlencoded`` bodies go through ``urllib.parse``;
``multipart/form-data`` bodies through ``python-multipart``'s streaming
parser, fed the already-buffered (and size-capped) body.
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from urllib.parse import parse_qsl

from python_multipart.multipart import MultipartParser, parse_options_header

from flux.http.multidict import MultiDict

# RFC 9110 token characters
_TOKEN = r"[!#$%&'*+\-.^_`|~0-9A-Za-z]+"
_MEDIA_TYPE_RE = re.compile(rf"^{_TOKEN}/{_TOKEN}$")


@dataclass(frozen=True, slots=True)
class UploadFile:
    """A file part of a multipart form, held in memory."""

    filename: str
    content_type: str
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.content)

    async def read(self) -> bytes:
        return self.content


class FormData(MultiDict):
    """Parsed form fields plus any uploaded files.

    Usage::

        form = ctx.multipart_form
        title = form["title"]
        avatar = form.files.get("avatar")  # UploadFile or None
    """

    __slots__ = ("_files",)

    def __init__(
        self,
        pairs: Iterable[tuple[str, str]] = (),
        files: Mapping[str, UploadFile] | None = None,
    ) -> None:
        super().__init__(pairs)
        self._files = dict(files or {})

    @property
    def files(self) -> Mapping[str, UploadFile]:
        """Uploaded files by field name."""
        return self._files


def parse_media_type(content_type: str) -> tuple[str, dict[bytes, bytes]]:
    """Split a Content-Type value into its lowercased media type and parameters.

    Raises:
        ValueError: If the media type is not of the form ``type/subtype``.
    """
    media_type, params = parse_options_header(content_type)
    mt = media_type.decode("latin-1").strip().lower()
    if not _MEDIA_TYPE_RE.match(mt):
        msg = f"Malformed media type: {content_type!r}"
        raise ValueError(msg)
    return mt, params


def parse_urlencoded(body: bytes) -> FormData:
    try:
        text = body.decode("utf-8")
    except UnicodeDecodeError as exc:
        msg = "Form body is not valid UTF-8"
        raise ValueError(msg) from exc
    return FormData(parse_qsl(text, keep_blank_values=True))


def parse_multipart(body: bytes, content_type: str) -> FormData:
    """Parse a complete ``multipart/form-data`` body.

    Raises:
        ValueError: If the boundary parameter is missing or the body is
            not well-formed multipart (python-multipart's parse errors
            are ``ValueError`` subclasses).
    """
    _, params = parse_options_header(content_type)
    boundary = params.get(b"boundary")
    if not boundary:
        msg = "Multipart form data missing boundary parameter"
        raise ValueError(msg)

    collector = _PartCollector()
    parser = MultipartParser(boundary, collector.callbacks())
    parser.write(body)
    parser.finalize()
    return FormData(collector.fields, collector.files)


class _PartCollector:
    """Accumulates python-multipart callback events into fields and files."""

    def __init__(self) -> None:
        self.fields: list[tuple[str, str]] = []
        self.files: dict[str, UploadFile] = {}
        self._header_name = bytearray()
        self._header_value = bytearray()
        self._headers: dict[str, str] = {}
        self._data = bytearray()

    def callbacks(self) -> dict[str, object]:
        return {
            "on_part_begin": self._begin,
            "on_header_field": self._header_field,
            "on_header_value": self._header_value_chunk,
            "on_header_end": self._header_end,
            "on_part_data": self._part_data,
            "on_part_end": self._end,
        }

    def _begin(self) -> None:
        self._headers = {}
        self._data = bytearray()

    def _header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_name += data[start:end]

    def _header_value_chunk(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _header_end(self) -> None:
        name = self._header_name.decode("latin-1").lower()
        self._headers[name] = self._header_value.decode("latin-1")
        self._header_name = bytearray()
        self._header_value = bytearray()

    def _part_data(self, data: bytes, start: int, end: int) -> None:
        self._data += data[start:end]

    def _end(self) -> None:
        _, disposition = parse_options_header(self._headers.get("content-disposition", ""))
        name = disposition.get(b"name")
        if name is None:
            # Parts without a field name carry nothing addressable
            return
        field_name = name.decode("utf-8")
        filename = disposition.get(b"filename")
        if filename is None:
            self.fields.append((field_name, self._data.decode("utf-8", errors="replace")))
            return
        self.files[field_name] = UploadFile(
            filename=filename.decode("utf-8"),
            content_type=self._headers.get("content-type", "application/octet-stream"),
            content=bytes(self._data),
        )

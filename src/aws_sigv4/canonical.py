# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Canonical request construction for the AWS Signature Version 4 algorithm.

The canonical request is a standardized string laying out the components used
in signing. It is useful to quickly compare inputs to find signature
mismatches and unintended variances.
"""

import io
import warnings
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from hashlib import sha256
from urllib.parse import parse_qsl, quote

from ._http import AWSRequest, Fields
from .exceptions import BodyReadError, SigV4Warning
from .interfaces.io import ByteStream, Payload

PAYLOAD_HASH_HEADER: str = "X-Amz-Content-Sha256"
UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH: str = (
    "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"
)
HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = ("authorization",)

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True, kw_only=True)
class CanonicalRequest:
    """The SigV4 canonical request:

        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        <SignedHeaders>\\n
        <HashedPayload>

    ``canonical_headers`` already ends with a newline, so the rendered form
    has an empty line between the headers and the signed header list.
    """

    method: str
    canonical_uri: str
    canonical_query_string: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    def __str__(self) -> str:
        return (
            f"{self.method}\n"
            f"{self.canonical_uri}\n"
            f"{self.canonical_query_string}\n"
            f"{self.canonical_headers}\n"
            f"{self.signed_headers}\n"
            f"{self.payload_hash}"
        )

    def hexdigest(self) -> str:
        return sha256(str(self).encode()).hexdigest()


def canonical_uri(path: str | None, *, uri_encode_path: bool = True) -> str:
    """URI-encode the absolute path of a request.

    Empty and ``.`` segments are dropped and ``..`` segments are resolved. A
    trailing slash on the original path is kept. With ``uri_encode_path``
    disabled, as S3 expects, the path is used exactly as given.
    """
    if not path:
        return "/"
    if not uri_encode_path:
        return path

    segments: list[str] = []
    for segment in path.split("/"):
        if segment in ("", "."):
            continue
        if segment == "..":
            if segments:
                segments.pop()
            continue
        segments.append(segment)

    normalized = "/" + "/".join(segments)
    if path.endswith("/") and normalized != "/":
        normalized += "/"
    return quote(normalized, safe="/")


def _escape(value: str) -> str:
    # Only the RFC 3986 unreserved characters are left as-is, so space is %20.
    return quote(value, safe="")


def canonical_query_string(query: str | None) -> str:
    """Build the sorted, strictly escaped query string.

    Parameters are decoded first, so escaping an already canonical query
    string returns it unchanged.
    """
    if not query:
        return ""

    pairs = (
        f"{_escape(key)}={_escape(value)}"
        for key, value in parse_qsl(query, keep_blank_values=True)
    )
    # key=value pairs must be in sorted order for their encoded forms.
    return "&".join(sorted(pairs))


def canonical_headers(
    fields: Fields,
    host: str,
    *,
    unsigned_headers: Iterable[str] = HEADERS_EXCLUDED_FROM_SIGNING,
) -> tuple[str, str]:
    """Build the canonical header block and the signed header list.

    :param fields: The request headers.
    :param host: The effective host of the request, always signed.
    :param unsigned_headers: Lower-case names never included in signing.
    :returns: A tuple of the newline-terminated canonical headers and the
        semicolon-separated signed header names.
    """
    excluded = {name.lower() for name in unsigned_headers}
    normalized = {"host": host.lower()}
    for field in fields:
        name = field.name.lower()
        if name == "host" or name in excluded:
            continue
        normalized[name] = ",".join(" ".join(value.split()) for value in field.values)

    names = sorted(normalized)
    return (
        "".join(f"{name}:{normalized[name]}\n" for name in names),
        ";".join(names),
    )


def _is_rewindable(body: object) -> bool:
    if not isinstance(body, Payload):
        return False
    seekable = getattr(body, "seekable", None)
    return seekable is None or bool(seekable())


def _iter_chunks(body: object) -> Iterator[bytes]:
    if isinstance(body, ByteStream):
        while chunk := body.read(_CHUNK_SIZE):
            yield chunk
    elif isinstance(body, Iterable):
        for chunk in body:
            if not isinstance(chunk, bytes | bytearray | memoryview):
                raise TypeError(
                    f"Request body chunks must be bytes, not {type(chunk).__name__}."
                )
            yield chunk
    else:
        raise TypeError(
            f"Unsupported request body type {type(body).__name__}. Expected bytes, "
            "a readable stream, or an iterable of bytes."
        )


def hash_payload(payload: Payload) -> str:
    """Hash a seekable payload with SHA-256.

    The payload is read from its current position and then rewound to it. The
    returned value can be used for the ``X-Amz-Content-Sha256`` header.
    """
    checksum = sha256()
    position = payload.tell()
    try:
        for chunk in _iter_chunks(payload):
            checksum.update(chunk)
    finally:
        payload.seek(position)
    return checksum.hexdigest()


def compute_payload_hash(request: AWSRequest) -> str:
    """Compute the hashed payload for ``request``.

    A value already present in the ``X-Amz-Content-Sha256`` header is trusted
    and the body is not read. Single-pass bodies are read into memory and
    replaced on the request so they can be sent afterwards.

    :raises BodyReadError: Reading the body failed.
    """
    if (preset := request.fields.get_value(PAYLOAD_HASH_HEADER)) != "":
        return preset

    body = request.body
    if body is None:
        return EMPTY_SHA256_HASH
    if isinstance(body, bytes | bytearray | memoryview):
        return sha256(body).hexdigest()

    try:
        if _is_rewindable(body):
            return hash_payload(body)  # type: ignore[arg-type]

        checksum = sha256()
        buffer = io.BytesIO()
        for chunk in _iter_chunks(body):
            buffer.write(chunk)
            checksum.update(chunk)
    except OSError as e:
        raise BodyReadError(f"Unable to read request body: {e}") from e

    buffer.seek(0)
    request.body = buffer
    warnings.warn(
        "The request body was read into memory to compute its hash. Provide a "
        "seekable body or a precomputed X-Amz-Content-Sha256 header to avoid this.",
        SigV4Warning,
        stacklevel=2,
    )
    return checksum.hexdigest()


def canonicalize(
    request: AWSRequest,
    *,
    payload_hash: str | None = None,
    uri_encode_path: bool = True,
    unsigned_headers: Iterable[str] = HEADERS_EXCLUDED_FROM_SIGNING,
) -> CanonicalRequest:
    """Build the canonical request for the current state of ``request``.

    :param request: The request to canonicalize.
    :param payload_hash: An already computed payload hash. When omitted
        the body is hashed, which may replace ``request.body``.
    :param uri_encode_path: Normalize and encode the path. Disable for S3.
    :param unsigned_headers: Lower-case header names to leave out of signing.
    """
    if payload_hash is None:
        payload_hash = compute_payload_hash(request)
    headers, signed_headers = canonical_headers(
        request.fields, request.host, unsigned_headers=unsigned_headers
    )
    return CanonicalRequest(
        method=request.method.upper(),
        canonical_uri=canonical_uri(
            request.destination.path, uri_encode_path=uri_encode_path
        ),
        canonical_query_string=canonical_query_string(request.destination.query),
        canonical_headers=headers,
        signed_headers=signed_headers,
        payload_hash=payload_hash,
    )

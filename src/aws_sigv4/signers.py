# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from collections.abc import Iterable
from datetime import datetime
from email.utils import parsedate_to_datetime
from hashlib import sha256
from typing import NamedTuple

from ._http import AWSRequest, Field
from .canonical import (
    HEADERS_EXCLUDED_FROM_SIGNING,
    PAYLOAD_HASH_HEADER,
    CanonicalRequest,
    canonicalize,
    compute_payload_hash,
)
from .exceptions import DateParseError
from .session import Session, as_utc

logger = logging.getLogger(__name__)

SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
ALGORITHM: str = "AWS4-HMAC-SHA256"
DATE_HEADER: str = "X-Amz-Date"
SECURITY_TOKEN_HEADER: str = "X-Amz-Security-Token"


class SigningResult(NamedTuple):
    """The intermediate values and output of signing one request."""

    canonical_request: str
    string_to_sign: str
    signature: str


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    Signing mutates the supplied request. A signer holds no per-request state,
    so one instance can be used from several threads.
    """

    def __init__(
        self,
        *,
        uri_encode_path: bool = True,
        content_sha256_header: bool = False,
        unsigned_headers: Iterable[str] = HEADERS_EXCLUDED_FROM_SIGNING,
    ) -> None:
        """
        :param uri_encode_path: Normalize and percent-encode the request path.
            S3 expects this to be disabled.
        :param content_sha256_header: Add an ``X-Amz-Content-Sha256`` header
            with the payload hash when the request doesn't already carry one.
        :param unsigned_headers: Header names left out of the signature.
            ``authorization`` is always included.
        """
        self._uri_encode_path = uri_encode_path
        self._content_sha256_header = content_sha256_header
        self._unsigned_headers = frozenset(
            {"authorization", *(name.lower() for name in unsigned_headers)}
        )

    def sign(self, *, session: Session, request: AWSRequest) -> SigningResult:
        """Apply a SigV4 signature to ``request`` in place.

        The ``Authorization`` header is set, along with ``X-Amz-Date`` when the
        request has no date and ``X-Amz-Security-Token`` when the session has a
        token. No header is changed if signing fails.

        :param session: The session providing the scope and signing key.
        :param request: The request to sign.
        :raises DateParseError: A date header on the request is malformed.
        :raises BodyReadError: The request body could not be read.
        """
        timestamp, stamp_date = self._request_time(request=request, session=session)
        payload_hash = compute_payload_hash(request)

        # Headers are only modified once nothing else can fail.
        self._apply_required_fields(
            request=request,
            session=session,
            timestamp=timestamp,
            stamp_date=stamp_date,
            payload_hash=payload_hash,
        )

        canonical = self.canonical_request(request=request, payload_hash=payload_hash)
        canonical_request = str(canonical)
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request,
            timestamp=timestamp,
            session=session,
        )
        signature = self._signature(
            string_to_sign=string_to_sign, signing_key=session.signing_key
        )

        logger.debug("String to sign:\n%s", string_to_sign)
        logger.debug("Signed headers: %s", canonical.signed_headers)

        request.fields.set_field(
            self.generate_authorization_field(
                credential=session.scope.credential,
                signed_headers=canonical.signed_headers.split(";"),
                signature=signature,
            )
        )
        return SigningResult(canonical_request, string_to_sign, signature)

    def canonical_request(
        self, *, request: AWSRequest, payload_hash: str | None = None
    ) -> CanonicalRequest:
        """Build the canonical request from the current state of ``request``.

        :param request: The request to canonicalize.
        :param payload_hash: A payload hash already computed for ``request``.
        """
        return canonicalize(
            request,
            payload_hash=payload_hash,
            uri_encode_path=self._uri_encode_path,
            unsigned_headers=self._unsigned_headers,
        )

    def string_to_sign(
        self, *, canonical_request: str, timestamp: str, session: Session
    ) -> str:
        """The string to sign concatenates the formal identifier of the signing
        algorithm, the request timestamp, the credential scope, and a hash of the
        canonical request:

            Algorithm \\n
            RequestDateTime \\n
            CredentialScope \\n
            HashedCanonicalRequest
        """
        return (
            f"{ALGORITHM}\n"
            f"{timestamp}\n"
            f"{session.scope.credential_scope}\n"
            f"{sha256(canonical_request.encode()).hexdigest()}"
        )

    def generate_authorization_field(
        self, *, credential: str, signed_headers: list[str], signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential string for the Authorization header. Defined as:
                <access_key>/<date>/<region>/<service>/aws4_request
        :param signed_headers:
            A list of the field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        signed_headers_str = ";".join(signed_headers)
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers_str}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def _signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        return hmac.new(
            key=signing_key, msg=string_to_sign.encode(), digestmod=sha256
        ).hexdigest()

    def _request_time(
        self, *, request: AWSRequest, session: Session
    ) -> tuple[str, bool]:
        """Find the timestamp to sign with.

        :returns: The formatted timestamp, and whether it must be added to the
            request as ``X-Amz-Date``.
        """
        if (amz_date := request.fields.get_value(DATE_HEADER)) != "":
            try:
                parsed = datetime.strptime(amz_date, SIGV4_TIMESTAMP_FORMAT)
            except ValueError as e:
                raise DateParseError(
                    f"Unable to parse {DATE_HEADER} header value {amz_date!r}."
                ) from e
            # strptime also accepts unpadded fields.
            if parsed.strftime(SIGV4_TIMESTAMP_FORMAT) != amz_date:
                raise DateParseError(
                    f"{DATE_HEADER} header value {amz_date!r} is not in the "
                    f"basic ISO 8601 format YYYYMMDDTHHMMSSZ."
                )
            return amz_date, False

        if (http_date := request.fields.get_value("Date")) != "":
            try:
                parsed = parsedate_to_datetime(http_date)
            except (TypeError, ValueError) as e:
                raise DateParseError(
                    f"Unable to parse Date header value {http_date!r}."
                ) from e
            return as_utc(parsed).strftime(SIGV4_TIMESTAMP_FORMAT), False

        return as_utc(session.clock()).strftime(SIGV4_TIMESTAMP_FORMAT), True

    def _apply_required_fields(
        self,
        *,
        request: AWSRequest,
        session: Session,
        timestamp: str,
        stamp_date: bool,
        payload_hash: str,
    ) -> None:
        if stamp_date:
            request.fields.set_field(Field(name=DATE_HEADER, values=[timestamp]))
        if session.session_token is not None:
            request.fields.set_field(
                Field(name=SECURITY_TOKEN_HEADER, values=[session.session_token])
            )
        if self._content_sha256_header and PAYLOAD_HASH_HEADER not in request.fields:
            request.fields.set_field(
                Field(name=PAYLOAD_HASH_HEADER, values=[payload_hash])
            )


_DEFAULT_SIGNER = SigV4Signer()


def sign(session: Session, request: AWSRequest) -> SigningResult:
    """Sign ``request`` in place with the default signer settings."""
    return _DEFAULT_SIGNER.sign(session=session, request=request)

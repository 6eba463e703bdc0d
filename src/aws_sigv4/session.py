# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import hmac
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, time, timedelta
from hashlib import sha256
from typing import NamedTuple, TypeAlias

from .credentials import Credentials
from .exceptions import NoCredentialsError

logger = logging.getLogger(__name__)

Clock: TypeAlias = Callable[[], datetime]
"""A zero-argument callable returning the current time."""

SCOPE_DATE_FORMAT: str = "%Y%m%d"
SCOPE_TERMINATOR: str = "aws4_request"


def utc_now() -> datetime:
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """Convert ``value`` to UTC, treating naive datetimes as already in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Scope(NamedTuple):
    """The credential scope a signing key and signature are bound to."""

    access_key_id: str
    date: str
    region: str
    service: str
    terminator: str = SCOPE_TERMINATOR

    @property
    def credential_scope(self) -> str:
        """Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request"""
        return "/".join(self[1:])

    @property
    def credential(self) -> str:
        """Credential format: <access key>/<credential scope>"""
        return "/".join(self)


def derive_signing_key(secret_access_key: str, scope: Scope) -> bytes:
    """Derive the SigV4 signing key for ``scope``.

    DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
    DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
    DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
    SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
    """
    key = f"AWS4{secret_access_key}".encode()
    for part in scope[1:]:
        key = hmac.new(key=key, msg=part.encode(), digestmod=sha256).digest()
    return key


@dataclass(frozen=True, kw_only=True)
class Session:
    """Signs requests for one credential, region, service and UTC day.

    A Session never changes after construction and may be shared by threads
    signing different requests. It does not refresh itself: build a new one
    once ``expires`` has passed.
    """

    scope: Scope
    signing_key: bytes = field(repr=False)
    session_token: str | None = field(default=None, repr=False)
    expires: datetime
    """When the scope date or the credentials stop being valid. Informational."""

    clock: Clock = field(default=utc_now, repr=False, compare=False)
    """Source of the current time for requests without a date header."""

    @property
    def region(self) -> str:
        return self.scope.region

    @property
    def service(self) -> str:
        return self.scope.service

    def is_expired(self, now: datetime | None = None) -> bool:
        if now is None:
            now = self.clock()
        return as_utc(now) >= self.expires


def new_session(
    *,
    region: str,
    service: str,
    credentials: Credentials,
    clock: Clock = utc_now,
) -> Session:
    """Start a new signing session.

    :param region: The AWS region to sign for, e.g. ``us-east-1``.
    :param service: The signing name of the service, e.g. ``iam``.
    :param credentials: Resolved credentials. Both the access key ID and the
        secret access key must be set.
    :param clock: Source of the current time. The scope date is taken from it
        once, in UTC.
    :raises NoCredentialsError: The access key ID or secret access key is empty.
    """
    if not credentials.access_key_id or not credentials.secret_access_key:
        raise NoCredentialsError(
            "A Session requires both an access key ID and a secret access key."
        )

    now = as_utc(clock())
    scope = Scope(
        access_key_id=credentials.access_key_id,
        date=now.strftime(SCOPE_DATE_FORMAT),
        region=region,
        service=service,
    )

    expires = datetime.combine(now.date() + timedelta(days=1), time(), tzinfo=UTC)
    if credentials.expiration is not None:
        expires = min(expires, as_utc(credentials.expiration))

    logger.debug("Starting signing session for scope %s", scope.credential_scope)
    return Session(
        scope=scope,
        signing_key=derive_signing_key(credentials.secret_access_key, scope),
        session_token=credentials.session_token or None,
        expires=expires,
        clock=clock,
    )

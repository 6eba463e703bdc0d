# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""SigV4 authentication for the ``requests`` library.

Example::

    import requests
    from aws_sigv4 import SigningConfig
    from aws_sigv4.auth import SigV4Auth

    auth = SigV4Auth(SigningConfig(region="us-west-2"))
    requests.get("https://sts.us-west-2.amazonaws.com/?Action=GetCallerIdentity"
                 "&Version=2011-06-15", auth=auth)
"""

import logging

from requests import PreparedRequest
from requests.auth import AuthBase

from ._http import AWSRequest
from .canonical import PAYLOAD_HASH_HEADER
from .config import SigningConfig
from .endpoints import parse_host
from .exceptions import SigV4Error
from .session import Session
from .signers import DATE_HEADER, SECURITY_TOKEN_HEADER, SigV4Signer

logger = logging.getLogger(__name__)

SIGNING_HEADERS: tuple[str, ...] = (
    "Authorization",
    DATE_HEADER,
    SECURITY_TOKEN_HEADER,
    PAYLOAD_HASH_HEADER,
)


class SigV4Auth(AuthBase):
    """Sign each request sent through ``requests`` with AWS SigV4.

    The region and service come from ``config`` when set there, and are
    otherwise inferred from the request host. One session is kept per region
    and service and replaced once it expires.
    """

    def __init__(self, config: SigningConfig, *, signer: SigV4Signer | None = None):
        self._config = config
        self._signer = signer if signer is not None else SigV4Signer()
        self._sessions: dict[tuple[str, str], Session] = {}

    def _session_for(self, region: str, service: str) -> Session:
        session = self._sessions.get((region, service))
        if session is None or session.is_expired():
            logger.debug("Creating signing session for %s in %s", service, region)
            session = self._config.new_session(region=region, service=service)
            self._sessions[(region, service)] = session
        return session

    def _scope_for(self, request: AWSRequest) -> tuple[str, str]:
        region = self._config.resolve_region()
        service = self._config.service
        if not region or not service:
            inferred_service, inferred_region = parse_host(request.host)
            region = region or inferred_region
            service = service or inferred_service
        if not region or not service:
            raise SigV4Error(
                f"Unable to determine the signing region and service for host "
                f"{request.host!r}. Set them on the SigningConfig."
            )
        return region, service

    def __call__(self, r: PreparedRequest) -> PreparedRequest:
        body = r.body
        if isinstance(body, str):
            body = body.encode("utf-8")

        request = AWSRequest.from_url(
            method=r.method or "GET",
            url=r.url or "",
            headers=r.headers.items(),
            body=body,
        )
        region, service = self._scope_for(request)
        self._signer.sign(session=self._session_for(region, service), request=request)

        for name in SIGNING_HEADERS:
            if name in request.fields:
                r.headers[name] = request.fields[name].as_string()
        if request.body is not body:
            r.body = request.body  # type: ignore[assignment]
        elif isinstance(r.body, str):
            r.body = body
        return r

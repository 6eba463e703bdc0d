# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field

import requests

from .credentials import Credentials, CredentialsResolver, SharedCredentialsFileProvider
from .imds import InstanceMetadataCredentialsProvider
from .interfaces.identity import CredentialsProvider
from .session import Clock, Session, new_session, utc_now

logger = logging.getLogger(__name__)

REGION_ENV_VARS: tuple[str, ...] = ("AWS_REGION", "AWS_DEFAULT_REGION")


def default_provider_chain(
    http_session: requests.Session | None = None,
) -> tuple[CredentialsProvider, ...]:
    """The providers consulted when neither configuration nor the environment
    supply credentials: the shared credentials file, then the EC2 instance
    metadata service."""
    return (
        SharedCredentialsFileProvider(),
        InstanceMetadataCredentialsProvider(http_session=http_session),
    )


@dataclass(frozen=True, kw_only=True)
class SigningConfig:
    """Settings used to start signing sessions.

    Every field is optional. Credentials that are not given explicitly are
    looked up in ``environ`` and then in ``providers``.
    """

    region: str | None = None
    """The region to sign for. Falls back to ``AWS_REGION`` and then
    ``AWS_DEFAULT_REGION``."""

    service: str | None = None
    """The signing name of the service."""

    credentials: Credentials = field(default_factory=Credentials)
    """Explicitly configured credentials. May be partial."""

    providers: tuple[CredentialsProvider, ...] = ()
    """Credential sources tried in order when no access key ID and secret
    access key are configured or set in the environment."""

    environ: Mapping[str, str] | None = field(default=None, repr=False)
    """Environment to read. ``None`` means ``os.environ``."""

    clock: Clock = field(default=utc_now, repr=False, compare=False)
    """Source of the current time."""

    @property
    def _environ(self) -> Mapping[str, str]:
        return os.environ if self.environ is None else self.environ

    def resolve_credentials(self) -> Credentials:
        """Resolve credentials from configuration, environment and providers.

        :raises NoCredentialsError: No complete credentials were found.
        """
        resolver = CredentialsResolver(
            providers=self.providers, environ=self._environ
        )
        return resolver.resolve(self.credentials)

    def resolve_region(self) -> str | None:
        if self.region:
            return self.region
        for name in REGION_ENV_VARS:
            if region := self._environ.get(name):
                logger.debug("Using region from %s", name)
                return region
        return None

    def new_session(
        self, *, region: str | None = None, service: str | None = None
    ) -> Session:
        """Resolve credentials and start a signing session.

        :param region: Overrides the configured region.
        :param service: Overrides the configured service.
        :raises ValueError: No region or no service is known.
        :raises NoCredentialsError: No complete credentials were found.
        """
        region = region or self.resolve_region()
        if not region:
            raise ValueError(
                "A region is required to sign requests. Set it on the config or "
                f"in {REGION_ENV_VARS[0]}."
            )
        service = service or self.service
        if not service:
            raise ValueError("A service is required to sign requests.")

        return new_session(
            region=region,
            service=service,
            credentials=self.resolve_credentials(),
            clock=self.clock,
        )

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import logging
from datetime import UTC, datetime

import requests

from .credentials import Credentials
from .exceptions import CredentialsProviderError

logger = logging.getLogger(__name__)

_USER_AGENT = "aws-sigv4-imds-client"
_DEFAULT_ENDPOINT = "http://169.254.169.254"
_DEFAULT_TIMEOUT = 1.0


class InstanceMetadataCredentialsProvider:
    """Fetch role credentials from the EC2 Instance Metadata Service (IMDSv2).

    A session token is requested first and sent with each metadata read. When
    the metadata service cannot be reached the provider reports that it has no
    credentials, so a resolver can move on.
    """

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105
    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials/"
    _MIN_TTL = 5
    _MAX_TTL = 21600

    def __init__(
        self,
        *,
        http_session: requests.Session | None = None,
        endpoint: str = _DEFAULT_ENDPOINT,
        timeout: float = _DEFAULT_TIMEOUT,
        token_ttl: int = _MAX_TTL,
        profile_name: str | None = None,
    ) -> None:
        if not self._MIN_TTL <= token_ttl <= self._MAX_TTL:
            raise ValueError(
                f"Token TTL must be between {self._MIN_TTL} and {self._MAX_TTL} seconds."
            )
        self._http_session = http_session or requests.Session()
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._token_ttl = token_ttl
        self._profile_name = profile_name

    def _get_token(self) -> str:
        response = self._http_session.put(
            self._endpoint + self._TOKEN_PATH,
            headers={
                "User-Agent": _USER_AGENT,
                "X-aws-ec2-metadata-token-ttl-seconds": str(self._token_ttl),
            },
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.text

    def _get(self, path: str, token: str) -> str:
        response = self._http_session.get(
            self._endpoint + path,
            headers={"User-Agent": _USER_AGENT, "X-aws-ec2-metadata-token": token},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.text

    def fetch(self) -> Credentials | None:
        try:
            token = self._get_token()
            profile = self._profile_name
            if profile is None:
                profile = self._get(self._METADATA_PATH_BASE, token).splitlines()[0]
            document = self._get(self._METADATA_PATH_BASE + profile, token)
        except (requests.RequestException, IndexError) as e:
            logger.debug("Instance metadata credentials unavailable: %s", e)
            return None

        try:
            creds = json.loads(document)
        except ValueError as e:
            raise CredentialsProviderError(
                "Unable to parse JSON from instance metadata credentials."
            ) from e

        access_key_id = creds.get("AccessKeyId")
        secret_access_key = creds.get("SecretAccessKey")
        if access_key_id is None or secret_access_key is None:
            raise CredentialsProviderError(
                "AccessKeyId and SecretAccessKey are required for instance "
                "metadata credentials"
            )

        expiration = creds.get("Expiration")
        if expiration is not None:
            expiration = datetime.fromisoformat(expiration)
            if expiration.tzinfo is None:
                expiration = expiration.replace(tzinfo=UTC)
            expiration = expiration.astimezone(UTC)

        return Credentials(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=creds.get("Token"),
            expiration=expiration,
        )

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import configparser
import logging
import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime
from pathlib import Path

from .exceptions import CredentialsProviderError, NoCredentialsError
from .interfaces.identity import CredentialsProvider

logger = logging.getLogger(__name__)

ACCESS_KEY_ENV_VARS: tuple[str, ...] = ("AWS_ACCESS_KEY_ID", "AWS_ACCESS_KEY")
SECRET_KEY_ENV_VARS: tuple[str, ...] = ("AWS_SECRET_ACCESS_KEY", "AWS_SECRET_KEY")
SESSION_TOKEN_ENV_VARS: tuple[str, ...] = ("AWS_SESSION_TOKEN",)


@dataclass(frozen=True, kw_only=True)
class Credentials:
    access_key_id: str | None = None
    """A unique identifier for an AWS user or role."""

    secret_access_key: str | None = field(default=None, repr=False)
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = field(default=None, repr=False)
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """When temporary credentials stop being valid, in UTC.

    Informational only; nothing in this package refreshes credentials.
    """

    @property
    def is_complete(self) -> bool:
        """Whether both the access key ID and the secret access key are set."""
        return bool(self.access_key_id) and bool(self.secret_access_key)

    @property
    def is_empty(self) -> bool:
        """Whether neither the access key ID nor the secret access key is set."""
        return not self.access_key_id and not self.secret_access_key


def _first_env_value(environ: Mapping[str, str], names: Sequence[str]) -> str | None:
    for name in names:
        if value := environ.get(name):
            return value
    return None


class StaticCredentialsProvider:
    """Provide a fixed set of credentials."""

    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def fetch(self) -> Credentials | None:
        return self._credentials


class EnvironmentCredentialsProvider:
    """Look up credentials in environment variables.

    Each field has a list of variable names that are tried in order; the first
    non-empty value wins. The result may be partial.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ

    def fetch(self) -> Credentials | None:
        environ = os.environ if self._environ is None else self._environ
        credentials = Credentials(
            access_key_id=_first_env_value(environ, ACCESS_KEY_ENV_VARS),
            secret_access_key=_first_env_value(environ, SECRET_KEY_ENV_VARS),
            session_token=_first_env_value(environ, SESSION_TOKEN_ENV_VARS),
        )
        if credentials.is_empty and credentials.session_token is None:
            return None
        return credentials


class SharedCredentialsFileProvider:
    """Read credentials from a profile in the shared credentials INI file."""

    def __init__(
        self,
        *,
        path: str | os.PathLike[str] | None = None,
        profile: str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._path = path
        self._profile = profile
        self._environ = environ

    def _resolve_path(self, environ: Mapping[str, str]) -> Path:
        if self._path is not None:
            return Path(self._path)
        if configured := environ.get("AWS_SHARED_CREDENTIALS_FILE"):
            return Path(configured).expanduser()
        return Path.home() / ".aws" / "credentials"

    def fetch(self) -> Credentials | None:
        environ = os.environ if self._environ is None else self._environ
        path = self._resolve_path(environ)
        profile = self._profile or environ.get("AWS_PROFILE") or "default"
        if not path.is_file():
            return None

        parser = configparser.ConfigParser()
        try:
            parser.read(path, encoding="utf-8")
        except configparser.Error as e:
            raise CredentialsProviderError(
                f"Unable to parse shared credentials file {path}."
            ) from e

        if profile not in parser:
            logger.debug("Profile %s not found in %s", profile, path)
            return None

        section = parser[profile]
        return Credentials(
            access_key_id=section.get("aws_access_key_id"),
            secret_access_key=section.get("aws_secret_access_key"),
            session_token=section.get("aws_session_token"),
        )


class CredentialsResolver:
    """Resolve a complete set of credentials from several sources.

    Explicitly supplied fields take precedence. Fields that are still empty are
    filled from environment variables one by one. If neither the access key ID
    nor the secret access key is known after that, ``providers`` are tried in
    order and the first complete result is used as a whole.
    """

    def __init__(
        self,
        *,
        providers: Sequence[CredentialsProvider] = (),
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._providers = tuple(providers)
        self._environment = EnvironmentCredentialsProvider(environ)

    def resolve(self, explicit: Credentials | None = None) -> Credentials:
        """Resolve credentials.

        :param explicit: Credentials configured in code. May be partial.
        :raises NoCredentialsError: No access key ID and secret access key pair
            could be found.
        """
        resolved = explicit if explicit is not None else Credentials()

        if env := self._environment.fetch():
            resolved = replace(
                resolved,
                access_key_id=resolved.access_key_id or env.access_key_id,
                secret_access_key=resolved.secret_access_key or env.secret_access_key,
                session_token=resolved.session_token or env.session_token,
            )
            if resolved.is_complete:
                logger.debug("Resolved credentials from configuration and environment")

        if resolved.is_empty:
            for provider in self._providers:
                fetched = provider.fetch()
                if fetched is not None and fetched.is_complete:
                    logger.debug(
                        "Resolved credentials from %s", type(provider).__name__
                    )
                    resolved = fetched
                    break

        if not resolved.is_complete:
            raise NoCredentialsError(
                "No credentials found. Configure an access key ID and secret access "
                f"key or set {ACCESS_KEY_ENV_VARS[0]} and {SECRET_KEY_ENV_VARS[0]}."
            )
        return resolved

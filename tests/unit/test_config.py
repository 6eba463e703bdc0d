# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
from aws_sigv4 import (
    Credentials,
    InstanceMetadataCredentialsProvider,
    SharedCredentialsFileProvider,
    SigningConfig,
    StaticCredentialsProvider,
    default_provider_chain,
)
from aws_sigv4.exceptions import NoCredentialsError
from aws_sigv4.interfaces.identity import CredentialsProvider

DATE = datetime(2015, 8, 30, 12, 36, 0, tzinfo=UTC)
CREDENTIALS = Credentials(access_key_id="AKID", secret_access_key="SECRET")


@pytest.mark.parametrize(
    "region, environ, expected",
    [
        ("eu-west-1", {"AWS_REGION": "us-west-2"}, "eu-west-1"),
        (None, {"AWS_REGION": "us-west-2", "AWS_DEFAULT_REGION": "x"}, "us-west-2"),
        (None, {"AWS_DEFAULT_REGION": "ap-south-1"}, "ap-south-1"),
        (None, {"AWS_REGION": "", "AWS_DEFAULT_REGION": "ap-south-1"}, "ap-south-1"),
        (None, {}, None),
    ],
)
def test_resolve_region(
    region: str | None, environ: dict[str, str], expected: str | None
) -> None:
    config = SigningConfig(region=region, environ=environ)
    assert config.resolve_region() == expected


def test_resolve_region_defaults_to_os_environ(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("AWS_REGION", "ca-central-1")
    assert SigningConfig().resolve_region() == "ca-central-1"


def test_config_is_immutable() -> None:
    config = SigningConfig(region="us-east-1")
    with pytest.raises(AttributeError):
        config.region = "us-west-2"  # type: ignore[misc]


def test_resolve_credentials_uses_providers_in_order() -> None:
    unused = Mock(spec=CredentialsProvider)
    config = SigningConfig(
        providers=(StaticCredentialsProvider(CREDENTIALS), unused), environ={}
    )
    assert config.resolve_credentials() == CREDENTIALS
    unused.fetch.assert_not_called()


def test_resolve_credentials_from_environment() -> None:
    config = SigningConfig(
        credentials=Credentials(access_key_id="explicit"),
        environ={"AWS_SECRET_ACCESS_KEY": "env-secret"},
    )
    assert config.resolve_credentials() == Credentials(
        access_key_id="explicit", secret_access_key="env-secret"
    )


def test_new_session() -> None:
    config = SigningConfig(
        region="us-east-1",
        service="iam",
        credentials=CREDENTIALS,
        environ={},
        clock=lambda: DATE,
    )
    session = config.new_session()
    assert session.scope.credential == "AKID/20150830/us-east-1/iam/aws4_request"

    overridden = config.new_session(region="eu-west-1", service="sts")
    assert overridden.scope.credential_scope == "20150830/eu-west-1/sts/aws4_request"


@pytest.mark.parametrize(
    "config",
    [
        SigningConfig(service="iam", credentials=CREDENTIALS, environ={}),
        SigningConfig(region="us-east-1", credentials=CREDENTIALS, environ={}),
    ],
)
def test_new_session_requires_region_and_service(config: SigningConfig) -> None:
    with pytest.raises(ValueError):
        config.new_session()


def test_new_session_without_credentials() -> None:
    config = SigningConfig(region="us-east-1", service="iam", environ={})
    with pytest.raises(NoCredentialsError):
        config.new_session()


def test_default_provider_chain() -> None:
    providers = default_provider_chain()
    assert [type(provider) for provider in providers] == [
        SharedCredentialsFileProvider,
        InstanceMetadataCredentialsProvider,
    ]
    assert all(isinstance(p, CredentialsProvider) for p in providers)

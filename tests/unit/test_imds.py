# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
import requests
from aws_sigv4.credentials import Credentials
from aws_sigv4.exceptions import CredentialsProviderError
from aws_sigv4.imds import InstanceMetadataCredentialsProvider

DOCUMENT = {
    "Code": "Success",
    "AccessKeyId": "ASIAEXAMPLE",
    "SecretAccessKey": "secret",
    "Token": "token",
    "Expiration": "2030-01-01T00:00:00Z",
}


def _response(text: str) -> Mock:
    response = Mock(spec=requests.Response)
    response.text = text
    return response


def _http_session(*texts: str) -> Mock:
    session = Mock(spec=requests.Session)
    session.put.return_value = _response("imds-token")
    session.get.side_effect = [_response(text) for text in texts]
    return session


def test_fetch_discovers_profile() -> None:
    http_session = _http_session("my-role\n", json.dumps(DOCUMENT))
    provider = InstanceMetadataCredentialsProvider(http_session=http_session)

    assert provider.fetch() == Credentials(
        access_key_id="ASIAEXAMPLE",
        secret_access_key="secret",
        session_token="token",
        expiration=datetime(2030, 1, 1, tzinfo=UTC),
    )

    put_args, put_kwargs = http_session.put.call_args
    assert put_args[0] == "http://169.254.169.254/latest/api/token"
    assert put_kwargs["headers"]["X-aws-ec2-metadata-token-ttl-seconds"] == "21600"

    urls = [call.args[0] for call in http_session.get.call_args_list]
    assert urls == [
        "http://169.254.169.254/latest/meta-data/iam/security-credentials/",
        "http://169.254.169.254/latest/meta-data/iam/security-credentials/my-role",
    ]
    for call in http_session.get.call_args_list:
        assert call.kwargs["headers"]["X-aws-ec2-metadata-token"] == "imds-token"


def test_fetch_with_configured_profile() -> None:
    http_session = _http_session(json.dumps(DOCUMENT))
    provider = InstanceMetadataCredentialsProvider(
        http_session=http_session, profile_name="other-role", token_ttl=60
    )

    creds = provider.fetch()
    assert creds is not None
    assert creds.access_key_id == "ASIAEXAMPLE"
    assert http_session.get.call_count == 1
    assert http_session.get.call_args.args[0].endswith("/other-role")
    assert (
        http_session.put.call_args.kwargs["headers"][
            "X-aws-ec2-metadata-token-ttl-seconds"
        ]
        == "60"
    )


def test_unreachable_service_returns_none() -> None:
    http_session = Mock(spec=requests.Session)
    http_session.put.side_effect = requests.ConnectionError("no route to host")
    provider = InstanceMetadataCredentialsProvider(http_session=http_session)
    assert provider.fetch() is None


def test_no_profile_returns_none() -> None:
    provider = InstanceMetadataCredentialsProvider(http_session=_http_session(""))
    assert provider.fetch() is None


def test_invalid_document_raises() -> None:
    provider = InstanceMetadataCredentialsProvider(
        http_session=_http_session("my-role", "not json")
    )
    with pytest.raises(CredentialsProviderError):
        provider.fetch()


def test_incomplete_document_raises() -> None:
    provider = InstanceMetadataCredentialsProvider(
        http_session=_http_session("my-role", json.dumps({"AccessKeyId": "a"}))
    )
    with pytest.raises(CredentialsProviderError):
        provider.fetch()


@pytest.mark.parametrize("ttl", [0, 4, 21601])
def test_invalid_token_ttl(ttl: int) -> None:
    with pytest.raises(ValueError):
        InstanceMetadataCredentialsProvider(
            http_session=Mock(spec=requests.Session), token_ttl=ttl
        )

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from datetime import UTC, datetime, timedelta, timezone

import pytest
from aws_sigv4.credentials import Credentials
from aws_sigv4.exceptions import NoCredentialsError
from aws_sigv4.session import Scope, derive_signing_key, new_session
from freezegun import freeze_time

SECRET_KEY = "wJalrXUtnFEMI/K7MDENG+bPxRfiCYEXAMPLEKEY"
CREDENTIALS = Credentials(access_key_id="AKIDEXAMPLE", secret_access_key=SECRET_KEY)
DATE = datetime(2015, 8, 30, 12, 36, 0, tzinfo=UTC)


def test_scope_strings() -> None:
    scope = Scope("AKIDEXAMPLE", "20150830", "us-east-1", "iam")
    assert scope.credential_scope == "20150830/us-east-1/iam/aws4_request"
    assert scope.credential == "AKIDEXAMPLE/20150830/us-east-1/iam/aws4_request"


@pytest.mark.parametrize(
    "service, expected",
    [
        (
            "iam",
            "c4afb1cc5771d871763a393e44b703571b55cc28424d1a5e86da6ed3c154a4b9",
        ),
        (
            "service",
            "938127b5336810ddb6a5d6af445fcac9e371f9ed418ed386b022aed82901be75",
        ),
    ],
)
def test_derive_signing_key(service: str, expected: str) -> None:
    scope = Scope("AKIDEXAMPLE", "20150830", "us-east-1", service)
    assert derive_signing_key(SECRET_KEY, scope).hex() == expected


def test_new_session() -> None:
    session = new_session(
        region="us-east-1", service="iam", credentials=CREDENTIALS, clock=lambda: DATE
    )
    assert session.scope == Scope("AKIDEXAMPLE", "20150830", "us-east-1", "iam")
    assert session.region == "us-east-1"
    assert session.service == "iam"
    assert session.signing_key.hex() == (
        "c4afb1cc5771d871763a393e44b703571b55cc28424d1a5e86da6ed3c154a4b9"
    )
    assert session.session_token is None
    assert session.expires == datetime(2015, 8, 31, tzinfo=UTC)
    assert SECRET_KEY not in repr(session)
    assert session.signing_key.hex() not in repr(session)


def test_session_is_deterministic() -> None:
    first = new_session(
        region="eu-west-1", service="s3", credentials=CREDENTIALS, clock=lambda: DATE
    )
    second = new_session(
        region="eu-west-1", service="s3", credentials=CREDENTIALS, clock=lambda: DATE
    )
    assert first == second


def test_session_date_is_utc() -> None:
    # 2015-08-31 01:00 in UTC+10 is still the 30th in UTC.
    local = datetime(2015, 8, 31, 1, 0, tzinfo=timezone(timedelta(hours=10)))
    session = new_session(
        region="us-east-1", service="iam", credentials=CREDENTIALS, clock=lambda: local
    )
    assert session.scope.date == "20150830"


def test_naive_clock_is_treated_as_utc() -> None:
    session = new_session(
        region="us-east-1",
        service="iam",
        credentials=CREDENTIALS,
        clock=lambda: datetime(2015, 8, 30, 23, 59, 59),
    )
    assert session.scope.date == "20150830"


@freeze_time("2015-08-30 12:36:00")
def test_default_clock() -> None:
    session = new_session(region="us-east-1", service="iam", credentials=CREDENTIALS)
    assert session.scope.date == "20150830"
    assert not session.is_expired()


def test_expiry_follows_credentials() -> None:
    expiration = datetime(2015, 8, 30, 13, 0, tzinfo=UTC)
    credentials = Credentials(
        access_key_id="AKIDEXAMPLE",
        secret_access_key=SECRET_KEY,
        session_token="token",
        expiration=expiration,
    )
    session = new_session(
        region="us-east-1", service="iam", credentials=credentials, clock=lambda: DATE
    )
    assert session.session_token == "token"
    assert session.expires == expiration
    assert not session.is_expired(DATE)
    assert session.is_expired(expiration)


@pytest.mark.parametrize(
    "credentials",
    [
        Credentials(),
        Credentials(access_key_id="AKIDEXAMPLE"),
        Credentials(secret_access_key=SECRET_KEY),
        Credentials(access_key_id="", secret_access_key=SECRET_KEY),
    ],
)
def test_new_session_requires_credentials(credentials: Credentials) -> None:
    with pytest.raises(NoCredentialsError):
        new_session(region="us-east-1", service="iam", credentials=credentials)


@pytest.mark.parametrize(
    "secret, date, region, service",
    [
        (SECRET_KEY + "x", "20150830", "us-east-1", "iam"),
        (SECRET_KEY, "20150831", "us-east-1", "iam"),
        (SECRET_KEY, "20150830", "us-east-2", "iam"),
        (SECRET_KEY, "20150830", "us-east-1", "sts"),
    ],
)
def test_signing_key_changes_with_any_input(
    secret: str, date: str, region: str, service: str
) -> None:
    base = derive_signing_key(
        SECRET_KEY, Scope("AKIDEXAMPLE", "20150830", "us-east-1", "iam")
    )
    changed = derive_signing_key(secret, Scope("AKIDEXAMPLE", date, region, service))
    assert len(changed) == 32
    assert changed != base


def test_signing_key_ignores_access_key_id() -> None:
    first = derive_signing_key(SECRET_KEY, Scope("AKID1", "20150830", "r", "s"))
    second = derive_signing_key(SECRET_KEY, Scope("AKID2", "20150830", "r", "s"))
    assert first == second

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0


class SigV4Warning(UserWarning): ...


class SigV4Error(Exception):
    """Top-level exception to capture signing related errors."""


class NoCredentialsError(SigV4Error):
    """No access key ID and secret access key pair could be resolved."""


class CredentialsProviderError(SigV4Error):
    """A credentials provider was reachable but returned unusable data."""


class BodyReadError(SigV4Error):
    """The request body could not be read while computing the payload hash.

    The request is left unsigned.
    """


class DateParseError(SigV4Error, ValueError):
    """A date header already present on the request could not be parsed."""

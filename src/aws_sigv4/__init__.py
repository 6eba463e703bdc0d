# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS Signature Version 4 request signing.

Credentials are resolved once into a :py:class:`Session` holding a signing key
scoped to a date, region and service. The session then signs any number of
requests, which can be sent with Requests, urllib3, curl or any other HTTP tool.
"""

from ._http import URI, AWSRequest, Field, Fields
from .config import SigningConfig, default_provider_chain
from .credentials import (
    Credentials,
    CredentialsResolver,
    EnvironmentCredentialsProvider,
    SharedCredentialsFileProvider,
    StaticCredentialsProvider,
)
from .endpoints import parse_host
from .imds import InstanceMetadataCredentialsProvider
from .session import Scope, Session, new_session
from .signers import SigningResult, SigV4Signer, sign

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "URI",
    "AWSRequest",
    "Credentials",
    "CredentialsResolver",
    "EnvironmentCredentialsProvider",
    "Field",
    "Fields",
    "InstanceMetadataCredentialsProvider",
    "Scope",
    "Session",
    "SharedCredentialsFileProvider",
    "SigV4Signer",
    "SigningConfig",
    "SigningResult",
    "StaticCredentialsProvider",
    "default_provider_chain",
    "new_session",
    "parse_host",
    "sign",
)

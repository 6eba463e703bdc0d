# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ..credentials import Credentials


@runtime_checkable
class CredentialsProvider(Protocol):
    """A source of AWS credentials consulted by the credentials resolver.

    Providers are tried in the order they are given to the resolver. A provider
    may read files or call remote services, but it must not keep any global
    state.
    """

    def fetch(self) -> Credentials | None:
        """Look up credentials.

        :returns: The credentials found, or ``None`` if this source has nothing
            to offer. Returned credentials may be partial; the resolver only
            accepts ones with both an access key ID and a secret access key.
        """
        ...

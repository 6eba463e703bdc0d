# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Protocol, runtime_checkable


@runtime_checkable
class ByteStream(Protocol):
    """A single-pass, file-like object with a read method that returns bytes."""

    def read(self, size: int = -1, /) -> bytes: ...


@runtime_checkable
class Payload(ByteStream, Protocol):
    """A readable body that can be rewound after hashing.

    Payloads are hashed in place and returned to their original position, so
    they never need to be copied into memory.
    """

    def seek(self, offset: int, whence: int = 0, /) -> int: ...

    def tell(self) -> int: ...

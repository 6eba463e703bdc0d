# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Minimal HTTP request model consumed and mutated by the signer.

Adapters for third-party HTTP libraries convert to and from these types.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import TypeAlias
from urllib.parse import urlsplit, urlunsplit

from .interfaces.io import ByteStream

Body: TypeAlias = bytes | bytearray | memoryview | ByteStream | Iterable[bytes]
"""The body types accepted on an :py:class:`AWSRequest`."""

DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}


class Field:
    """A header and every value sent for it, in order.

    The name keeps the casing it was given with; lookups in :py:class:`Fields`
    ignore case.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = [] if values is None else list(values)

    def add(self, value: str) -> None:
        self.values.append(value)

    def as_string(self, delimiter: str = ",") -> str:
        """Join the values with ``delimiter``.

        No values give ``""``; a single value is returned as is.
        """
        return delimiter.join(self.values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Field):
            return (self.name, self.values) == (other.name, other.values)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    """Request headers keyed by lower-cased name, in insertion order."""

    def __init__(self, initial: Iterable[Field] | None = None):
        """
        :param initial: Fields to start with. Two entries whose names differ
            only by case are rejected.
        """
        self.entries: dict[str, Field] = {}
        for field in initial or ():
            key = field.name.lower()
            if key in self.entries:
                raise ValueError(f"Field {field.name!r} appears more than once.")
            self.entries[key] = field

    @classmethod
    def from_pairs(cls, pairs: Iterable[tuple[str, str]]) -> Fields:
        """Build a collection from ``(name, value)`` pairs.

        Repeated names are merged into one ``Field`` with the values kept in
        the order given.
        """
        fields = cls()
        for name, value in pairs:
            if (existing := fields.get(name)) is not None:
                existing.add(value)
            else:
                fields.set_field(Field(name=name, values=[value]))
        return fields

    def set_field(self, field: Field) -> None:
        """Add ``field``, replacing any field with the same name."""
        self.entries[field.name.lower()] = field

    def __setitem__(self, name: str, field: Field) -> None:
        if name.lower() != field.name.lower():
            raise ValueError(
                f"Key {name!r} does not match the field name {field.name!r}."
            )
        self.set_field(field)

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self.entries.get(key.lower(), default)

    def get_value(self, key: str) -> str:
        """Get the comma-joined value for ``key``, or ``""`` if it is absent."""
        field = self.get(key)
        return "" if field is None else field.as_string()

    def __getitem__(self, name: str) -> Field:
        return self.entries[name.lower()]

    def __delitem__(self, name: str) -> None:
        del self.entries[name.lower()]

    def __contains__(self, key: str) -> bool:
        return key.lower() in self.entries

    def __iter__(self) -> Iterator[Field]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Fields):
            return self.entries == other.entries
        return NotImplemented

    def __repr__(self) -> str:
        return f"Fields({list(self.entries.values())!r})"


@dataclass(kw_only=True, frozen=True)
class URI:
    """Where an :py:class:`AWSRequest` is sent."""

    scheme: str = "https"
    host: str
    port: int | None = None
    path: str | None = None
    """The path as sent on the wire, still percent-encoded."""

    query: str | None = None
    """The query string without the leading ``?``."""

    fragment: str | None = None
    """Never sent or signed."""

    @classmethod
    def from_url(cls, url: str) -> URI:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if ":" in host:
            host = f"[{host}]"
        return cls(
            scheme=parts.scheme or "https",
            host=host,
            port=parts.port,
            path=parts.path or None,
            query=parts.query or None,
            fragment=parts.fragment or None,
        )

    @property
    def netloc(self) -> str:
        """``host:port``, leaving out a port that is the scheme's default."""
        if self.port is None or DEFAULT_PORTS.get(self.scheme) == self.port:
            return self.host
        return f"{self.host}:{self.port}"

    def build(self) -> str:
        """The URL without its fragment."""
        return urlunsplit(
            (self.scheme, self.netloc, self.path or "", self.query or "", "")
        )


class AWSRequest:
    """An HTTP request to be signed.

    Signing mutates the request in place: headers are added to ``fields`` and a
    single-pass ``body`` may be replaced by an in-memory copy.
    """

    def __init__(
        self,
        *,
        destination: URI,
        method: str,
        body: Body | None = None,
        fields: Fields | None = None,
    ):
        self.destination = destination
        self.method = method
        self.body = body
        self.fields = fields if fields is not None else Fields()

    @classmethod
    def from_url(
        cls,
        method: str,
        url: str,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        body: Body | None = None,
    ) -> AWSRequest:
        if headers is None:
            headers = ()
        elif isinstance(headers, Mapping):
            headers = headers.items()
        return cls(
            destination=URI.from_url(url),
            method=method,
            body=body,
            fields=Fields.from_pairs(headers),
        )

    @property
    def host(self) -> str:
        """The effective host: the ``Host`` header if set, else the destination."""
        return self.fields.get_value("Host") or self.destination.netloc

    def __repr__(self) -> str:
        return (
            f"AWSRequest(method={self.method!r}, "
            f"destination={self.destination.build()!r}, fields={self.fields!r})"
        )

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Inference of the signing service and region from an AWS endpoint host."""

DEFAULT_REGION: str = "us-east-1"

KNOWN_REGIONS: frozenset[str] = frozenset(
    {
        # AWS Standard
        "af-south-1",
        "ap-east-1",
        "ap-northeast-1",
        "ap-northeast-2",
        "ap-northeast-3",
        "ap-south-1",
        "ap-south-2",
        "ap-southeast-1",
        "ap-southeast-2",
        "ap-southeast-3",
        "ap-southeast-4",
        "ap-southeast-5",
        "ca-central-1",
        "ca-west-1",
        "eu-central-1",
        "eu-central-2",
        "eu-north-1",
        "eu-south-1",
        "eu-south-2",
        "eu-west-1",
        "eu-west-2",
        "eu-west-3",
        "il-central-1",
        "me-central-1",
        "me-south-1",
        "sa-east-1",
        "us-east-1",
        "us-east-2",
        "us-west-1",
        "us-west-2",
        # AWS China
        "cn-north-1",
        "cn-northwest-1",
        # AWS GovCloud (US)
        "us-gov-east-1",
        "us-gov-west-1",
        # Legacy S3 endpoint label, signed as us-east-1.
        "external-1",
    }
)

REGION_ALIASES: dict[str, str] = {"external-1": DEFAULT_REGION}

DNS_SUFFIXES: tuple[str, ...] = (".amazonaws.com", ".amazonaws.com.cn")

# Longest first, so "us-gov-west-1" wins over any shorter region it ends with.
_REGIONS_BY_LENGTH = sorted(KNOWN_REGIONS, key=len, reverse=True)


def _canonical_region(region: str) -> str:
    return REGION_ALIASES.get(region, region)


def _strip_port(host: str) -> str:
    name, sep, port = host.rpartition(":")
    if sep and port.isdigit():
        return name
    return host


def parse_host(host: str) -> tuple[str, str]:
    """Infer the signing service and region from an AWS endpoint host.

    The following forms are recognized under ``amazonaws.com`` and
    ``amazonaws.com.cn``, ignoring case and any port:

    * ``<service>.<region>``, e.g. ``ec2.eu-west-1.amazonaws.com``
    * ``<region>.<service>``, e.g. ``eu-west-1.es.amazonaws.com``
    * ``<service>-<region>``, e.g. ``s3-eu-west-1.amazonaws.com``
    * ``<anything>.s3``, e.g. ``bucket.s3.amazonaws.com``, in ``us-east-1``
    * a single global service label, e.g. ``iam.amazonaws.com``, in
      ``us-east-1``

    :param host: The host name, optionally with a port.
    :returns: A ``(service, region)`` tuple, or ``("", "")`` if the host is not
        a recognized AWS endpoint.
    """
    host = _strip_port(host.strip().lower())
    for suffix in DNS_SUFFIXES:
        if host.endswith(suffix):
            prefix = host[: -len(suffix)]
            break
    else:
        return "", ""

    labels = prefix.split(".")
    if not all(labels):
        return "", ""
    last = labels[-1]

    if last in KNOWN_REGIONS:
        if len(labels) < 2:
            return "", ""
        return labels[-2], _canonical_region(last)

    if len(labels) >= 2 and labels[-2] in KNOWN_REGIONS:
        return last, _canonical_region(labels[-2])

    for region in _REGIONS_BY_LENGTH:
        service = last.removesuffix(f"-{region}")
        if service and service != last:
            return service, _canonical_region(region)

    if last == "s3" or len(labels) == 1:
        return last, DEFAULT_REGION

    return "", ""

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from .identity import CredentialsProvider
from .io import ByteStream, Payload

__all__ = ("ByteStream", "CredentialsProvider", "Payload")

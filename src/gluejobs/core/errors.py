# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from typing import Iterable, List


class GlueJobError(ValueError):
    """Base class for definition-time errors raised while resolving a job"""


class ConfigurationError(GlueJobError):
    """Job properties are inconsistent (ex: worker type set without a worker count)"""


class ReservedArgumentError(GlueJobError):
    def __init__(self, keys: Iterable[str]) -> None:
        self.keys: List[str] = sorted(keys)
        super().__init__(f"The argument(s) {self.keys!r} are reserved by AWS Glue and must not be set in default arguments!")


class ValidationError(GlueJobError):
    """A property value is malformed (ex: an invalid Spark UI prefix)"""

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Standalone predicates and assertions used while resolving job properties.

Everything here is side-effect free so that each rule can be exercised on its own.
"""

import logging
import math
import re
from typing import Iterable, Mapping, Optional, Set, Tuple

from .constants import LARGE_WORKER_TYPES, RESERVED_ARGUMENTS, ExecutionClass, GlueVersion, MaxCapacity, WorkerType
from .errors import ConfigurationError, ReservedArgumentError, ValidationError

logger = logging.getLogger(__name__)

# safe characters for S3 object keys
#  https://docs.aws.amazon.com/AmazonS3/latest/userguide/object-keys.html
_S3_PREFIX_PATTERN = re.compile(r"^[A-Za-z0-9!\-_.*'()/]+$")


def validate_worker_sizing(
    worker_type: Optional[WorkerType], number_of_workers: Optional[int]
) -> Tuple[Optional[WorkerType], Optional[int]]:
    if (worker_type is None) != (number_of_workers is None):
        raise ConfigurationError(
            f"Both workerType and numberOfWorkers must be set! workerType={worker_type!r}, numberOfWorkers={number_of_workers!r}"
        )
    if number_of_workers is not None and (isinstance(number_of_workers, bool) or not isinstance(number_of_workers, int) or number_of_workers < 1):
        raise ConfigurationError(f"numberOfWorkers value {number_of_workers!r} is not valid for an AWS Glue job!")
    return worker_type, number_of_workers


def find_reserved_arguments(arguments: Optional[Mapping[str, str]], reserved: Iterable[str] = RESERVED_ARGUMENTS) -> Set[str]:
    if not arguments:
        return set()
    return set(arguments.keys()) & set(reserved)


def check_no_reserved_arguments(arguments: Optional[Mapping[str, str]], reserved: Iterable[str] = RESERVED_ARGUMENTS) -> Mapping[str, str]:
    """Returns the caller supplied arguments untouched or raises if any of its keys is owned by AWS Glue."""
    collisions = find_reserved_arguments(arguments, reserved)
    if collisions:
        raise ReservedArgumentError(collisions)
    return arguments if arguments else {}


def check_string_map(arguments: Optional[Mapping[str, str]]) -> None:
    for key, value in (arguments or {}).items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise ValidationError(f"Job arguments must be a map of strings! Invalid entry: {key!r}={value!r}")


def validate_spark_ui_prefix(prefix: Optional[str]) -> None:
    """A prefix is a relative S3 key fragment such as 'logs/' or 'spark/ui'. None means the root of the bucket."""
    if prefix is None:
        return

    errors = []
    if not prefix:
        errors.append("Prefix must not be empty")
    else:
        if prefix.startswith("/"):
            errors.append("Prefix must not begin with '/'")
        if "//" in prefix:
            errors.append("Prefix must not contain empty path segments ('//')")
        if not _S3_PREFIX_PATTERN.match(prefix):
            errors.append("Prefix contains characters that are not safe for S3 object keys")

    if errors:
        raise ValidationError(f"Invalid Spark UI prefix format (value: {prefix!r}): " + "; ".join(errors))


def clean_spark_ui_prefix_for_grant(prefix: Optional[str]) -> str:
    if prefix is None:
        return "*"
    return prefix.rstrip("/") + "/*"


def validate_max_capacity(max_capacity: Optional[float]) -> Optional[MaxCapacity]:
    if max_capacity is None:
        return None
    value = float(max_capacity)
    for capacity in MaxCapacity:
        if math.isclose(value, capacity.value):
            return capacity
    raise ConfigurationError(f"MaxCapacity {max_capacity!r} for Python Shell jobs is not valid! Valid values are either 0.0625 or 1.0")


def validate_worker_type_for_version(worker_type: Optional[WorkerType], glue_version: GlueVersion) -> None:
    if worker_type in LARGE_WORKER_TYPES and not glue_version.at_least(GlueVersion.V3_0):
        raise ConfigurationError(f"WorkerType {worker_type.value!r} requires AWS Glue version 3.0 or later (got {glue_version.value!r})")


def validate_execution_class(execution_class: Optional[ExecutionClass], glue_version: GlueVersion) -> None:
    if execution_class == ExecutionClass.FLEX and not glue_version.at_least(GlueVersion.V3_0):
        raise ConfigurationError(f"FLEX execution class requires AWS Glue version 3.0 or later (got {glue_version.value!r})")


def timeout_in_minutes(timeout) -> Optional[int]:
    """Accepts minutes as int or a datetime.timedelta"""
    if timeout is None:
        return None
    minutes = int(timeout.total_seconds() // 60) if hasattr(timeout, "total_seconds") else int(timeout)
    if minutes < 1:
        raise ConfigurationError(f"Timeout value {timeout!r} for AWS Glue job is too low or not valid!")
    return minutes

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

__all__ = [
    "Job",
    "JobProperties",
    "JobVariant",
    "VARIANT_DEFAULTS",
    "resolve_job",
    "python_shell_job",
    "pyspark_etl_job",
    "pyspark_streaming_job",
    "ray_job",
]

from .base import VARIANT_DEFAULTS, Job, JobProperties, JobVariant, resolve_job
from .pyspark_etl import pyspark_etl_job
from .pyspark_streaming import pyspark_streaming_job
from .python_shell import python_shell_job
from .ray import ray_job

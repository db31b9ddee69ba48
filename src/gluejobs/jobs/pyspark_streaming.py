# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""PySpark Streaming jobs

Similar to ETL jobs, except that they perform ETL on data streams using Spark Structured Streaming.
Defaults to Glue 4.0, Python 3.9 and 10 G.2X workers with profiling metrics enabled.
"""

from ..core.resources import Code, Role
from ..core.scope import Stack
from .base import Job, JobProperties, JobVariant


def pyspark_streaming_job(scope: Stack, job_id: str, script: Code, role: Role, **options) -> Job:
    return Job(scope, job_id, JobVariant.PYSPARK_STREAMING, JobProperties(script, role, **options))

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""PySpark ETL jobs

Batch Spark jobs. Defaults to Glue 4.0, Python 3 and 10 G.1X workers. Profiling metrics are enabled by default,
Spark UI and continuous logging are enabled on demand. Job bookmarks, FLEX execution and job run queuing are
available for this variant only.
"""

from ..core.resources import Code, Role
from ..core.scope import Stack
from .base import Job, JobProperties, JobVariant


def pyspark_etl_job(scope: Stack, job_id: str, script: Code, role: Role, **options) -> Job:
    return Job(scope, job_id, JobVariant.PYSPARK_ETL, JobProperties(script, role, **options))

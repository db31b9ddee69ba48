# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from ._logging_config import init_basic_logging
from .core.constants import (
    ExecutionClass,
    GlueVersion,
    JobBookmarksOption,
    JobLanguage,
    JobType,
    MaxCapacity,
    PythonVersion,
    Runtime,
    WorkerType,
)
from .core.errors import ConfigurationError, GlueJobError, ReservedArgumentError, ValidationError
from .core.monitoring import ContinuousLoggingProps, SparkUILoggingLocation, SparkUIProps
from .core.resources import Bucket, Code, LogGroup, PolicyStatement, Role
from .core.scope import Stack
from .deployment import deploy, destroy
from .jobs import Job, JobProperties, JobVariant, pyspark_etl_job, pyspark_streaming_job, python_shell_job, ray_job

# aliases
PythonShellJob = python_shell_job
PySparkEtlJob = pyspark_etl_job
PySparkStreamingJob = pyspark_streaming_job
RayJob = ray_job

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Python Shell jobs

Plain Python scripts on a single node, sized by 'max_capacity' (0.0625 or 1 DPU, defaults to 0.0625) rather than workers.
Defaults to Glue 3.0 and Python 3.9. Spark UI, continuous logging and profiling metrics do not apply.
"""

from ..core.resources import Code, Role
from ..core.scope import Stack
from .base import Job, JobProperties, JobVariant


def python_shell_job(scope: Stack, job_id: str, script: Code, role: Role, **options) -> Job:
    """'options' are the optional fields of JobProperties (ex: max_capacity=1.0, python_version="3")"""
    return Job(scope, job_id, JobVariant.PYTHON_SHELL, JobProperties(script, role, **options))

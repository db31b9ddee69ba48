# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Ray jobs

Glue Ray only supports worker type Z.2X and Glue version 4.0 or later.
Runtime defaults to Ray2.4 and the number of workers to 3. Spark specific toggles are ignored.
"""

from ..core.resources import Code, Role
from ..core.scope import Stack
from .base import Job, JobProperties, JobVariant


def ray_job(scope: Stack, job_id: str, script: Code, role: Role, **options) -> Job:
    return Job(scope, job_id, JobVariant.RAY, JobProperties(script, role, **options))

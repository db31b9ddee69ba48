# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from enum import Enum, unique
from typing import FrozenSet

from packaging import version
from packaging.version import Version

JOB_ARN_FORMAT = "arn:{}:glue:{}:{}:job/{}"

# refer
#   https://docs.aws.amazon.com/glue/latest/dg/aws-glue-programming-etl-glue-arguments.html
# these are internal to AWS Glue and must not be set by users.
RESERVED_ARGUMENTS: FrozenSet[str] = frozenset({"--conf", "--debug", "--mode", "--JOB_NAME"})

MAX_JOB_NAME_LEN = 255


@unique
class JobType(str, Enum):
    ETL = "glueetl"
    STREAMING = "gluestreaming"
    PYTHON_SHELL = "pythonshell"
    RAY = "glueray"


@unique
class JobLanguage(str, Enum):
    PYTHON = "python"
    SCALA = "scala"


@unique
class GlueVersion(str, Enum):
    V0_9 = "0.9"
    V1_0 = "1.0"
    V2_0 = "2.0"
    V3_0 = "3.0"
    V4_0 = "4.0"
    V5_0 = "5.0"

    def parsed(self) -> Version:
        return version.parse(self.value)

    def at_least(self, other: "GlueVersion") -> bool:
        return self.parsed() >= other.parsed()


@unique
class PythonVersion(str, Enum):
    TWO = "2"
    THREE = "3"
    THREE_NINE = "3.9"


@unique
class Runtime(str, Enum):
    """Runtime environment of Glue Ray jobs"""

    RAY_TWO_FOUR = "Ray2.4"


@unique
class WorkerType(str, Enum):
    STANDARD = "Standard"
    G_025X = "G.025X"
    G_1X = "G.1X"
    G_2X = "G.2X"
    G_4X = "G.4X"
    G_8X = "G.8X"
    Z_2X = "Z.2X"


# worker types that only exist from Glue 3.0 onwards
LARGE_WORKER_TYPES: FrozenSet[WorkerType] = frozenset({WorkerType.G_4X, WorkerType.G_8X})


@unique
class ExecutionClass(str, Enum):
    STANDARD = "STANDARD"
    FLEX = "FLEX"


@unique
class MaxCapacity(float, Enum):
    """DPU options for Python Shell jobs"""

    DPU_1_16TH = 0.0625
    DPU_1 = 1.0


@unique
class JobBookmarksOption(str, Enum):
    ENABLE = "job-bookmark-enable"
    DISABLE = "job-bookmark-disable"
    PAUSE = "job-bookmark-pause"

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Translate high level observability toggles into AWS Glue job arguments.

Refer
    https://docs.aws.amazon.com/glue/latest/dg/monitor-continuous-logging-enable.html
    https://docs.aws.amazon.com/glue/latest/dg/monitor-spark-ui-jobs.html
    https://docs.aws.amazon.com/glue/latest/dg/aws-glue-programming-etl-glue-arguments.html
"""

import logging
from typing import Dict, Optional, Tuple

from .entity import CoreData
from .resources import Bucket, LogGroup, Role
from .scope import Stack
from .validation import clean_spark_ui_prefix_for_grant, validate_spark_ui_prefix

logger = logging.getLogger(__name__)

ENABLE_CONTINUOUS_LOG = "--enable-continuous-cloudwatch-log"
ENABLE_CONTINUOUS_LOG_FILTER = "--enable-continuous-log-filter"
CONTINUOUS_LOG_GROUP = "--continuous-log-logGroup"
CONTINUOUS_LOG_STREAM_PREFIX = "--continuous-log-logStreamPrefix"
CONTINUOUS_LOG_CONVERSION_PATTERN = "--continuous-log-conversionPattern"
ENABLE_METRICS = "--enable-metrics"
ENABLE_SPARK_UI = "--enable-spark-ui"
SPARK_EVENT_LOGS_PATH = "--spark-event-logs-path"

SPARK_UI_BUCKET_ID_SUFFIX = "SparkUIBucket"


class ContinuousLoggingProps(CoreData):
    def __init__(
        self,
        enabled: bool = True,
        log_group: Optional[LogGroup] = None,
        log_stream_prefix: Optional[str] = None,
        quiet: bool = True,
        conversion_pattern: Optional[str] = None,
    ) -> None:
        self.enabled = enabled
        self.log_group = log_group
        self.log_stream_prefix = log_stream_prefix
        # filter out non-useful Apache Spark driver/executor and Hadoop YARN heartbeat log messages
        self.quiet = quiet
        self.conversion_pattern = conversion_pattern


class SparkUIProps(CoreData):
    def __init__(self, enabled: bool = True, bucket: Optional[Bucket] = None, prefix: Optional[str] = None) -> None:
        self.enabled = enabled
        self.bucket = bucket
        self.prefix = prefix


class SparkUILoggingLocation(CoreData):
    """Where Spark UI event logs of a job are written"""

    def __init__(self, bucket: Bucket, prefix: Optional[str] = None) -> None:
        self.bucket = bucket
        self.prefix = prefix

    @property
    def s3_url(self) -> str:
        return self.bucket.s3_url_for_object(self.prefix)


def continuous_logging_arguments(props: Optional[ContinuousLoggingProps], role: Optional[Role] = None) -> Dict[str, str]:
    if not props or not props.enabled:
        return {}

    args = {
        ENABLE_CONTINUOUS_LOG: "true",
        ENABLE_CONTINUOUS_LOG_FILTER: str(props.quiet).lower(),
    }
    if props.log_group:
        args[CONTINUOUS_LOG_GROUP] = props.log_group.log_group_name
        if role is not None:
            props.log_group.grant_write(role)
    if props.log_stream_prefix:
        args[CONTINUOUS_LOG_STREAM_PREFIX] = props.log_stream_prefix
    if props.conversion_pattern:
        args[CONTINUOUS_LOG_CONVERSION_PATTERN] = props.conversion_pattern
    return args


def metrics_arguments(enabled: bool) -> Dict[str, str]:
    # AWS Glue expects the flag without a value
    return {ENABLE_METRICS: ""} if enabled else {}


def setup_spark_ui(scope: Stack, job_id: str, role: Role, props: SparkUIProps) -> Tuple[SparkUILoggingLocation, Dict[str, str]]:
    """Must be called at most once per job, a new bucket is emitted each time no bucket is provided."""
    validate_spark_ui_prefix(props.prefix)

    bucket = props.bucket
    if bucket is None:
        bucket = Bucket(scope, f"{job_id}{SPARK_UI_BUCKET_ID_SUFFIX}")
        logger.info("Created Spark UI bucket %s for job %s", bucket.bucket_name, job_id)
    bucket.grant_read_write(role, clean_spark_ui_prefix_for_grant(props.prefix))

    location = SparkUILoggingLocation(bucket, props.prefix)
    args = {
        ENABLE_SPARK_UI: "true",
        SPARK_EVENT_LOGS_PATH: location.s3_url,
    }
    return location, args

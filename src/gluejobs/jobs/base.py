# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Shared resolution of AWS Glue job definitions.

Job variants are not modelled as subclasses. Each :class:`JobVariant` maps to a row of :data:`VARIANT_DEFAULTS` which
declares its command type, default versions, default sizing and the optional features that apply to it.
:func:`resolve_job` consumes that row and the caller's :class:`JobProperties` in a single pass:

    1. validate versions and worker sizing, fill variant defaults
    2. resolve the script (and extra code) locations, granting read access to the role
    3. build the argument fragments (required, continuous logging, metrics, Spark UI)
    4. merge them with the caller's default arguments (see :func:`gluejobs.core.arguments.merge_arguments`)

:class:`Job` then hands the result to the scope (the resource emitter) and derives the job name and ARN.
"""

import logging
from enum import Enum, unique
from typing import Any, Dict, FrozenSet, List, Optional, Sequence, Type, TypeVar, Union

from ..core.arguments import merge_arguments
from ..core.constants import (
    JOB_ARN_FORMAT,
    MAX_JOB_NAME_LEN,
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
from ..core.entity import CoreData
from ..core.errors import ConfigurationError
from ..core.monitoring import (
    ContinuousLoggingProps,
    SparkUILoggingLocation,
    SparkUIProps,
    continuous_logging_arguments,
    metrics_arguments,
    setup_spark_ui,
)
from ..core.resources import Code, Role
from ..core.scope import Stack
from ..core.validation import (
    check_no_reserved_arguments,
    check_string_map,
    timeout_in_minutes,
    validate_execution_class,
    validate_max_capacity,
    validate_spark_ui_prefix,
    validate_worker_sizing,
    validate_worker_type_for_version,
)

logger = logging.getLogger(__name__)

GLUE_JOB_RESOURCE_TYPE = "AWS::Glue::Job"

JOB_LANGUAGE = "--job-language"
EXTRA_PY_FILES = "--extra-py-files"
EXTRA_JARS = "--extra-jars"
EXTRA_FILES = "--extra-files"
USER_JARS_FIRST = "--user-jars-first"
JOB_BOOKMARK_OPTION = "--job-bookmark-option"


@unique
class JobVariant(str, Enum):
    PYTHON_SHELL = "PYTHON_SHELL"
    PYSPARK_ETL = "PYSPARK_ETL"
    PYSPARK_STREAMING = "PYSPARK_STREAMING"
    RAY = "RAY"


@unique
class Feature(str, Enum):
    WORKER_SIZING = "WORKER_SIZING"
    MAX_CAPACITY = "MAX_CAPACITY"
    PYTHON_VERSION = "PYTHON_VERSION"
    RUNTIME = "RUNTIME"
    EXECUTION_CLASS = "EXECUTION_CLASS"
    JOB_RUN_QUEUING = "JOB_RUN_QUEUING"
    # toggles below are ignored (with a warning) when they do not apply
    SPARK_UI = "SPARK_UI"
    CONTINUOUS_LOGGING = "CONTINUOUS_LOGGING"
    METRICS = "METRICS"
    EXTRA_PYTHON_FILES = "EXTRA_PYTHON_FILES"
    SPARK_EXTRAS = "SPARK_EXTRAS"
    JOB_BOOKMARKS = "JOB_BOOKMARKS"


class VariantDefaults(CoreData):
    def __init__(
        self,
        job_type: JobType,
        glue_version: GlueVersion,
        python_version: PythonVersion,
        features: FrozenSet[Feature],
        job_language: Optional[JobLanguage] = JobLanguage.PYTHON,
        worker_type: Optional[WorkerType] = None,
        number_of_workers: Optional[int] = None,
        max_capacity: Optional[MaxCapacity] = None,
        runtime: Optional[Runtime] = None,
        min_glue_version: Optional[GlueVersion] = None,
        allowed_worker_types: Optional[FrozenSet[WorkerType]] = None,
    ) -> None:
        self.job_type = job_type
        self.glue_version = glue_version
        self.python_version = python_version
        self.features = features
        self.job_language = job_language
        self.worker_type = worker_type
        self.number_of_workers = number_of_workers
        self.max_capacity = max_capacity
        self.runtime = runtime
        self.min_glue_version = min_glue_version
        self.allowed_worker_types = allowed_worker_types

    def supports(self, feature: Feature) -> bool:
        return feature in self.features


_PYSPARK_FEATURES = frozenset(
    {
        Feature.WORKER_SIZING,
        Feature.SPARK_UI,
        Feature.CONTINUOUS_LOGGING,
        Feature.METRICS,
        Feature.EXTRA_PYTHON_FILES,
        Feature.SPARK_EXTRAS,
    }
)

VARIANT_DEFAULTS: Dict[JobVariant, VariantDefaults] = {
    JobVariant.PYTHON_SHELL: VariantDefaults(
        job_type=JobType.PYTHON_SHELL,
        glue_version=GlueVersion.V3_0,
        python_version=PythonVersion.THREE_NINE,
        features=frozenset({Feature.MAX_CAPACITY, Feature.PYTHON_VERSION, Feature.EXTRA_PYTHON_FILES}),
        max_capacity=MaxCapacity.DPU_1_16TH,
    ),
    JobVariant.PYSPARK_ETL: VariantDefaults(
        job_type=JobType.ETL,
        glue_version=GlueVersion.V4_0,
        python_version=PythonVersion.THREE,
        features=_PYSPARK_FEATURES | {Feature.JOB_BOOKMARKS, Feature.EXECUTION_CLASS, Feature.JOB_RUN_QUEUING},
        worker_type=WorkerType.G_1X,
        number_of_workers=10,
        min_glue_version=GlueVersion.V2_0,
    ),
    JobVariant.PYSPARK_STREAMING: VariantDefaults(
        job_type=JobType.STREAMING,
        glue_version=GlueVersion.V4_0,
        python_version=PythonVersion.THREE_NINE,
        features=_PYSPARK_FEATURES,
        worker_type=WorkerType.G_2X,
        number_of_workers=10,
        min_glue_version=GlueVersion.V2_0,
    ),
    JobVariant.RAY: VariantDefaults(
        job_type=JobType.RAY,
        glue_version=GlueVersion.V4_0,
        python_version=PythonVersion.THREE_NINE,
        features=frozenset({Feature.WORKER_SIZING, Feature.RUNTIME}),
        job_language=None,
        worker_type=WorkerType.Z_2X,
        number_of_workers=3,
        runtime=Runtime.RAY_TWO_FOUR,
        min_glue_version=GlueVersion.V4_0,
        allowed_worker_types=frozenset({WorkerType.Z_2X}),
    ),
}


CodeLike = Union[Code, str]


class JobProperties(CoreData):
    """Caller supplied configuration of a job. Only 'script' and 'role' are mandatory.

    'worker_type' and 'number_of_workers' must be set together. Enum typed fields also accept their string values
    (ex: worker_type="G.2X").
    """

    def __init__(
        self,
        script: Code,
        role: Role,
        job_name: Optional[str] = None,
        description: Optional[str] = None,
        glue_version: Optional[Union[GlueVersion, str]] = None,
        worker_type: Optional[Union[WorkerType, str]] = None,
        number_of_workers: Optional[int] = None,
        max_retries: Optional[int] = None,
        max_concurrent_runs: Optional[int] = None,
        # minutes or datetime.timedelta
        timeout: Optional[Any] = None,
        notify_delay_after: Optional[int] = None,
        connections: Optional[Sequence[str]] = None,
        security_configuration: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None,
        default_arguments: Optional[Dict[str, str]] = None,
        continuous_logging: Optional[ContinuousLoggingProps] = None,
        spark_ui: Optional[SparkUIProps] = None,
        enable_profiling_metrics: Optional[bool] = None,
        job_bookmarks_option: Optional[Union[JobBookmarksOption, str]] = None,
        extra_python_files: Optional[Sequence[CodeLike]] = None,
        extra_jars: Optional[Sequence[CodeLike]] = None,
        extra_files: Optional[Sequence[CodeLike]] = None,
        extra_jars_first: bool = False,
        job_run_queuing_enabled: Optional[bool] = None,
        execution_class: Optional[Union[ExecutionClass, str]] = None,
        max_capacity: Optional[float] = None,
        python_version: Optional[Union[PythonVersion, str]] = None,
        runtime: Optional[Union[Runtime, str]] = None,
    ) -> None:
        self.script = script
        self.role = role
        self.job_name = job_name
        self.description = description
        self.glue_version = glue_version
        self.worker_type = worker_type
        self.number_of_workers = number_of_workers
        self.max_retries = max_retries
        self.max_concurrent_runs = max_concurrent_runs
        self.timeout = timeout
        self.notify_delay_after = notify_delay_after
        self.connections = connections
        self.security_configuration = security_configuration
        self.tags = tags
        self.default_arguments = default_arguments
        self.continuous_logging = continuous_logging
        self.spark_ui = spark_ui
        self.enable_profiling_metrics = enable_profiling_metrics
        self.job_bookmarks_option = job_bookmarks_option
        self.extra_python_files = extra_python_files
        self.extra_jars = extra_jars
        self.extra_files = extra_files
        self.extra_jars_first = extra_jars_first
        self.job_run_queuing_enabled = job_run_queuing_enabled
        self.execution_class = execution_class
        self.max_capacity = max_capacity
        self.python_version = python_version
        self.runtime = runtime


class ResolvedCommand(CoreData):
    def __init__(
        self,
        job_type: JobType,
        script_location: str,
        python_version: PythonVersion,
        arguments: Dict[str, str],
        runtime: Optional[Runtime] = None,
    ) -> None:
        self.job_type = job_type
        self.script_location = script_location
        self.python_version = python_version
        self.arguments = arguments
        self.runtime = runtime

    def to_template(self) -> Dict[str, Any]:
        return {
            "Name": self.job_type.value,
            "ScriptLocation": self.script_location,
            "PythonVersion": self.python_version.value,
            "Runtime": self.runtime.value if self.runtime else None,
        }


class ResolvedJob(CoreData):
    def __init__(
        self,
        job_name: str,
        command: ResolvedCommand,
        properties: Dict[str, Any],
        spark_ui_logging_location: Optional[SparkUILoggingLocation] = None,
    ) -> None:
        self.job_name = job_name
        self.command = command
        self.properties = properties
        self.spark_ui_logging_location = spark_ui_logging_location


EnumType = TypeVar("EnumType", bound=Enum)


def _coerce(enum_type: Type[EnumType], value: Any, field: str) -> Optional[EnumType]:
    if value is None or isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError:
        raise ConfigurationError(f"{field} value {value!r} is not valid! Valid values: {[member.value for member in enum_type]}")


def _unsupported(variant: JobVariant, feature: Feature) -> ConfigurationError:
    return ConfigurationError(f"{feature.value} is not supported by {variant.value} jobs!")


def _ignore(variant: JobVariant, feature: Feature) -> None:
    logger.warning("%s does not apply to %s jobs and will be ignored.", feature.value, variant.value)


def _to_code_list(codes: Optional[Sequence[CodeLike]]) -> List[Code]:
    code_list = [Code.of(code) for code in codes] if codes else []
    for code in code_list:
        code.validate()
    return code_list


def _resolve_code_list(scope: Stack, codes: List[Code], role: Role) -> str:
    return ",".join(code.resolve(scope, role) for code in codes)


def _required_arguments(
    scope: Stack, variant: JobVariant, defaults: VariantDefaults, props: JobProperties, extra_code: Dict[str, List[Code]]
) -> Dict[str, str]:
    """Arguments the job cannot run without, plus the ones derived from typed properties"""
    args: Dict[str, str] = dict()
    if defaults.job_language:
        args[JOB_LANGUAGE] = defaults.job_language.value

    if props.extra_python_files:
        if defaults.supports(Feature.EXTRA_PYTHON_FILES):
            args[EXTRA_PY_FILES] = _resolve_code_list(scope, extra_code[EXTRA_PY_FILES], props.role)
        else:
            _ignore(variant, Feature.EXTRA_PYTHON_FILES)

    if props.extra_jars or props.extra_files or props.extra_jars_first:
        if defaults.supports(Feature.SPARK_EXTRAS):
            if props.extra_jars:
                args[EXTRA_JARS] = _resolve_code_list(scope, extra_code[EXTRA_JARS], props.role)
            if props.extra_files:
                args[EXTRA_FILES] = _resolve_code_list(scope, extra_code[EXTRA_FILES], props.role)
            if props.extra_jars_first:
                args[USER_JARS_FIRST] = "true"
        else:
            _ignore(variant, Feature.SPARK_EXTRAS)

    if props.job_bookmarks_option is not None:
        if defaults.supports(Feature.JOB_BOOKMARKS):
            args[JOB_BOOKMARK_OPTION] = _coerce(JobBookmarksOption, props.job_bookmarks_option, "JobBookmarksOption").value
        else:
            _ignore(variant, Feature.JOB_BOOKMARKS)
    return args


def _resolve_sizing(variant: JobVariant, defaults: VariantDefaults, props: JobProperties, glue_version: GlueVersion):
    worker_type, number_of_workers = validate_worker_sizing(_coerce(WorkerType, props.worker_type, "WorkerType"), props.number_of_workers)

    if not defaults.supports(Feature.WORKER_SIZING):
        if worker_type is not None:
            raise _unsupported(variant, Feature.WORKER_SIZING)
    else:
        if worker_type is None:
            worker_type, number_of_workers = defaults.worker_type, defaults.number_of_workers
        if defaults.allowed_worker_types and worker_type not in defaults.allowed_worker_types:
            raise ConfigurationError(
                f"WorkerType {worker_type.value!r} is not supported by {variant.value} jobs! "
                f"Supported: {sorted(w.value for w in defaults.allowed_worker_types)}"
            )
        validate_worker_type_for_version(worker_type, glue_version)

    max_capacity = None
    if defaults.supports(Feature.MAX_CAPACITY):
        max_capacity = validate_max_capacity(props.max_capacity) or defaults.max_capacity
    elif props.max_capacity is not None:
        raise _unsupported(variant, Feature.MAX_CAPACITY)

    return worker_type, number_of_workers, max_capacity


def _check_non_negative(value: Optional[int], field: str, minimum: int = 0) -> Optional[int]:
    if value is not None and int(value) < minimum:
        raise ConfigurationError(f"{field} value {value!r} is not valid! It must be at least {minimum}.")
    return value


def resolve_job(scope: Stack, job_id: str, variant: JobVariant, props: JobProperties) -> ResolvedJob:
    defaults = VARIANT_DEFAULTS[variant]
    role = props.role

    glue_version = _coerce(GlueVersion, props.glue_version, "GlueVersion") or defaults.glue_version
    if defaults.min_glue_version and not glue_version.at_least(defaults.min_glue_version):
        raise ConfigurationError(f"{variant.value} jobs require AWS Glue version {defaults.min_glue_version.value} or later (got {glue_version.value!r})")

    worker_type, number_of_workers, max_capacity = _resolve_sizing(variant, defaults, props, glue_version)

    python_version = defaults.python_version
    if props.python_version is not None:
        if not defaults.supports(Feature.PYTHON_VERSION):
            raise _unsupported(variant, Feature.PYTHON_VERSION)
        python_version = _coerce(PythonVersion, props.python_version, "PythonVersion")

    runtime = defaults.runtime
    if props.runtime is not None:
        if not defaults.supports(Feature.RUNTIME):
            raise _unsupported(variant, Feature.RUNTIME)
        runtime = _coerce(Runtime, props.runtime, "Runtime")

    execution_class = _coerce(ExecutionClass, props.execution_class, "ExecutionClass")
    if execution_class is not None:
        if not defaults.supports(Feature.EXECUTION_CLASS):
            raise _unsupported(variant, Feature.EXECUTION_CLASS)
        validate_execution_class(execution_class, glue_version)

    if props.job_run_queuing_enabled is not None and not defaults.supports(Feature.JOB_RUN_QUEUING):
        raise _unsupported(variant, Feature.JOB_RUN_QUEUING)

    max_retries = _check_non_negative(props.max_retries, "MaxRetries")
    max_concurrent_runs = _check_non_negative(props.max_concurrent_runs, "MaxConcurrentRuns", minimum=1)
    timeout = timeout_in_minutes(props.timeout)
    job_name = props.job_name if props.job_name else scope.generate_physical_name(job_id, max_length=MAX_JOB_NAME_LEN)
    if len(job_name) > MAX_JOB_NAME_LEN:
        raise ConfigurationError(f"Job name {job_name!r} is longer than {MAX_JOB_NAME_LEN} characters!")
    check_no_reserved_arguments(props.default_arguments)
    check_string_map(props.default_arguments)
    if props.spark_ui and props.spark_ui.enabled and defaults.supports(Feature.SPARK_UI):
        validate_spark_ui_prefix(props.spark_ui.prefix)
    props.script.validate()
    extra_code = {
        EXTRA_PY_FILES: _to_code_list(props.extra_python_files),
        EXTRA_JARS: _to_code_list(props.extra_jars),
        EXTRA_FILES: _to_code_list(props.extra_files),
    }

    # nothing is granted or emitted before this point

    script_location = props.script.resolve(scope, role)
    required_args = _required_arguments(scope, variant, defaults, props, extra_code)

    continuous_logging_args: Dict[str, str] = dict()
    if props.continuous_logging and props.continuous_logging.enabled:
        if defaults.supports(Feature.CONTINUOUS_LOGGING):
            continuous_logging_args = continuous_logging_arguments(props.continuous_logging, role)
        else:
            _ignore(variant, Feature.CONTINUOUS_LOGGING)

    metrics_args: Dict[str, str] = dict()
    if defaults.supports(Feature.METRICS):
        # on unless explicitly disabled
        metrics_args = metrics_arguments(props.enable_profiling_metrics is not False)
    elif props.enable_profiling_metrics:
        _ignore(variant, Feature.METRICS)

    spark_ui_location = None
    spark_ui_args: Dict[str, str] = dict()
    if props.spark_ui and props.spark_ui.enabled:
        if defaults.supports(Feature.SPARK_UI):
            spark_ui_location, spark_ui_args = setup_spark_ui(scope, job_id, role, props.spark_ui)
        else:
            _ignore(variant, Feature.SPARK_UI)

    arguments = merge_arguments(
        required=required_args,
        continuous_logging=continuous_logging_args,
        metrics=metrics_args,
        spark_ui=spark_ui_args,
        caller=props.default_arguments,
    )

    command = ResolvedCommand(defaults.job_type, script_location, python_version, arguments, runtime)

    properties = {
        "Name": job_name,
        "Description": props.description,
        "Role": role.role_arn,
        "Command": command.to_template(),
        "DefaultArguments": arguments,
        "GlueVersion": glue_version.value,
        "WorkerType": worker_type.value if worker_type else None,
        "NumberOfWorkers": int(number_of_workers) if number_of_workers is not None else None,
        "MaxCapacity": max_capacity.value if max_capacity else None,
        "MaxRetries": max_retries,
        "ExecutionProperty": {"MaxConcurrentRuns": max_concurrent_runs} if max_concurrent_runs else None,
        "Timeout": timeout,
        "NotificationProperty": {"NotifyDelayAfter": props.notify_delay_after} if props.notify_delay_after else None,
        "Connections": {"Connections": list(props.connections)} if props.connections else None,
        "SecurityConfiguration": props.security_configuration,
        "Tags": dict(props.tags) if props.tags else None,
        "ExecutionClass": execution_class.value if execution_class else None,
        "JobRunQueuingEnabled": props.job_run_queuing_enabled,
    }

    logger.info("Resolved %s job %s (glue version: %s, command: %s)", variant.value, job_name, glue_version.value, defaults.job_type.value)
    return ResolvedJob(job_name, command, properties, spark_ui_location)


def build_job_arn(scope: Stack, job_name: str) -> str:
    return JOB_ARN_FORMAT.format(scope.partition, scope.region, scope.account, job_name)


class Job:
    """An AWS Glue job defined in a :class:`Stack`.

    Construction resolves the definition completely (or raises), there is no partially defined state.
    """

    def __init__(self, scope: Stack, job_id: str, variant: JobVariant, props: JobProperties) -> None:
        self.scope = scope
        self.variant = variant
        scope.check_logical_id(job_id)

        resolved = resolve_job(scope, job_id, variant, props)
        self.logical_id = scope.allocate_logical_id(job_id)
        reference = scope.emit(self.logical_id, GLUE_JOB_RESOURCE_TYPE, resolved.properties, physical_name=resolved.job_name)

        self.role: Role = props.role
        self.grant_principal: Role = self.role.grant_principal
        self.command: ResolvedCommand = resolved.command
        self.spark_ui_logging_location: Optional[SparkUILoggingLocation] = resolved.spark_ui_logging_location
        self.job_name: str = reference.physical_name
        self.job_arn: str = build_job_arn(scope, self.job_name)

    @property
    def default_arguments(self) -> Dict[str, str]:
        return dict(self.command.arguments)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(variant={self.variant.value!r}, job_name={self.job_name!r})"

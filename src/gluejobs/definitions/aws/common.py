# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
import logging
import time
from typing import Any, Dict, Optional, Sequence

import boto3
from botocore.exceptions import ClientError, WaiterError

module_logger = logging.getLogger(__name__)

AWS_GLUE_SERVICE_PRINCIPAL = "glue.amazonaws.com"
AWS_GLUE_SERVICE_ROLE_POLICY = "service-role/AWSGlueServiceRole"


def get_code_for_exception(error):
    if isinstance(error, ClientError) and "Code" in error.response["Error"]:
        return error.response["Error"]["Code"]
    elif isinstance(error, WaiterError) and "Error" in error.last_response:
        return error.last_response["Error"]["Code"]
    elif hasattr(error, "error_code"):
        return error.error_code

    return error.__class__.__name__


def get_aws_account_id_from_arn(arn: str) -> str:
    return arn.split(":")[4]


# common AWS service errors
AWS_COMMON_RETRYABLE_ERRORS = [
    "TooManyRequestsException",
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "Unavailable",
    "InternalFailure",
    "InternalError",
    "InternalServerError",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "ConnectTimeoutError",
    "ReadTimeoutError",
]


MAX_SLEEP_INTERVAL_PARAM = "_max_sleep_time_in_secs"
MAX_SLEEP_INTERVAL_DEFAULT = 64 + 1


def exponential_retry(func, service_retryable_errors, *func_args, **func_kwargs):
    """
    Retries the specified function with a simple exponential backoff algorithm.
    :param func: The function to retry.
    :param service_retryable_errors: AWS service specific retryable error codes. These are added to an internal list
                                    of AWS common retryable errors to get a final list of retryable errors. Anything else
                                    is raised without a retry.
    :param func_args: The positional arguments to pass to the function.
    :param func_kwargs: The keyword arguments to pass to the function.
    :return: The return value of the retried function.
    """
    retryables = list(AWS_COMMON_RETRYABLE_ERRORS)
    retryables.extend(service_retryable_errors)
    sleepy_time = 1
    if MAX_SLEEP_INTERVAL_PARAM in func_kwargs:
        max_sleepy_time = func_kwargs.get(MAX_SLEEP_INTERVAL_PARAM)
        del func_kwargs[MAX_SLEEP_INTERVAL_PARAM]
    else:
        max_sleepy_time = MAX_SLEEP_INTERVAL_DEFAULT
    while True:
        try:
            func_return = func(*func_args, **func_kwargs)
            module_logger.debug("Ran %s, got %s.", func.__name__ if hasattr(func, "__name__") else str(func), func_return)
            break
        except Exception as error:
            error_code = get_code_for_exception(error)
            if error_code in retryables:
                module_logger.critical(f"Sleeping for {sleepy_time} to give AWS time to connect resources. Retryable error_code={error_code!r}")
                time.sleep(sleepy_time)
                sleepy_time = sleepy_time * 2
                if sleepy_time < max_sleepy_time:
                    continue
            raise
    return func_return


def get_caller_identity(session: boto3.Session, region: str) -> str:
    sts = session.client(service_name="sts", region_name=region)
    return exponential_retry(sts.get_caller_identity, ["AccessDenied"])["Arn"]


def get_aws_account_id(session: boto3.Session, region: str) -> str:
    return get_aws_account_id_from_arn(get_caller_identity(session, region))


def get_trust_policy(allowed_services: Sequence[str]) -> Dict[str, Any]:
    """Example allowed_service: 'glue.amazonaws.com'"""
    return {
        "Version": "2012-10-17",
        "Statement": [{"Effect": "Allow", "Principal": {"Service": service}, "Action": "sts:AssumeRole"} for service in allowed_services],
    }


def has_role(role_name: str, base_session: boto3.Session) -> bool:
    iam = base_session.client("iam")
    try:
        exponential_retry(iam.get_role, ["Throttling"], RoleName=role_name)
        return True
    except iam.exceptions.NoSuchEntityException:
        return False


def create_role(role_name: str, base_session: boto3.Session, assume_role_policy: Dict[str, Any], description: Optional[str] = None):
    """
    Creates a role with the given trust policy.

    :return: The newly created role.
    """
    iam = base_session.client("iam")
    params = {"RoleName": role_name, "AssumeRolePolicyDocument": json.dumps(assume_role_policy)}
    if description:
        params["Description"] = description
    try:
        role = exponential_retry(iam.create_role, ["ServiceFailureException"], **params)
        if "role_exists" in iam.waiter_names:
            iam.get_waiter("role_exists").wait(RoleName=role_name)

        module_logger.info("Created role %s", role_name)
    except ClientError as ex:
        module_logger.exception("Couldn't create role %s. Exception: %s", role_name, str(ex))
        raise
    else:
        return role


def normalize_policy_arn(managed_policy_name: str, partition: str = "aws") -> str:
    return managed_policy_name if managed_policy_name.startswith("arn:") else f"arn:{partition}:iam::aws:policy/{managed_policy_name}"


def attach_aws_managed_policy(role_name: str, managed_policy_name: str, base_session: boto3.Session) -> None:
    """
    managed_policy_name: can be a full AWS managed policy arn or just the policy name
    """
    iam = base_session.client("iam")
    policy_arn = normalize_policy_arn(managed_policy_name)
    try:
        iam.attach_role_policy(RoleName=role_name, PolicyArn=policy_arn)

        module_logger.info(f"Attached AWS managed policy {managed_policy_name!r} to the role {role_name!r}")
    except ClientError as ex:
        module_logger.exception("Could not attach AWS managed policy to role %s. Exception: %s", role_name, str(ex))
        raise


def put_inlined_policy(role_name: str, policy_name: str, policy_document: Dict[str, Any], base_session: boto3.Session) -> None:
    iam = base_session.client("iam")
    try:
        exponential_retry(
            iam.put_role_policy,
            ["ServiceFailureException"],
            PolicyDocument=json.dumps(policy_document),
            PolicyName=policy_name,
            RoleName=role_name,
        )
        module_logger.info("Put inlined policy %s on role %s", policy_name, role_name)
    except ClientError as err:
        module_logger.exception("Couldn't put inlined policy %s on role %s. Error: %s", policy_name, role_name, str(err))
        raise


def get_inlined_policy(role_name: str, policy_name: str, base_session: boto3.Session) -> Optional[Dict[str, Any]]:
    iam = base_session.client("iam")
    try:
        response = iam.get_role_policy(RoleName=role_name, PolicyName=policy_name)
    except ClientError as err:
        if err.response["Error"]["Code"] in ["NoSuchEntity", "NoSuchEntityException"]:
            return None
        raise
    document = response["PolicyDocument"]
    return json.loads(document) if isinstance(document, str) else document

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
from typing import Any, Dict, Optional

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

# parameters of 'create_job' that 'update_job' does not accept within 'JobUpdate'
#  https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/glue/client/update_job.html
_CREATE_ONLY_PARAMS = ("Name", "Tags")


def create_glue_job(glue_client, job_params: Dict[str, Any]) -> str:
    """Refer
    https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/glue/client/create_job.html

    :param job_params: 'create_job' parameters, AWS::Glue::Job template properties map to them one to one.
    """
    glue_job_name = job_params["Name"]
    try:
        response = glue_client.create_job(**job_params)
        job_name = response["Name"]
    except ClientError:
        logger.exception("Couldn't create glue job %s.", glue_job_name)
        raise
    else:
        logger.info("Created glue job %s.", job_name)
        return job_name


def update_glue_job(glue_client, job_params: Dict[str, Any]) -> str:
    glue_job_name = job_params["Name"]
    job_update = {key: value for key, value in job_params.items() if key not in _CREATE_ONLY_PARAMS}

    try:
        response = glue_client.update_job(JobName=glue_job_name, JobUpdate=job_update)
        job_name = response["JobName"]
    except ClientError:
        logger.exception("Couldn't update glue job %s.", glue_job_name)
        raise
    else:
        logger.info("Updated glue job %s.", job_name)
        return job_name


def delete_glue_job(glue_client, glue_job_name):
    """Refer
    https://boto3.amazonaws.com/v1/documentation/api/latest/reference/services/glue/client/delete_job.html

    Note: If the job definition is not found, no exception is thrown.
    """
    try:
        glue_client.delete_job(JobName=glue_job_name)
    except ClientError:
        logger.exception("Couldn't delete glue job %s.", glue_job_name)
        raise


def get_glue_job(glue_client, job_name) -> Optional[Dict[str, Any]]:
    try:
        response = glue_client.get_job(JobName=job_name)
        return response["Job"]
    except ClientError as ex:
        if ex.response["Error"]["Code"] == "EntityNotFoundException":
            return None
        logger.error("Couldn't check glue job '%s'! Error: %s", job_name, str(ex))
        raise

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from gluejobs.definitions.aws.glue.client_wrapper import create_glue_job, delete_glue_job, get_glue_job, update_glue_job
from gluejobs.mixins.aws.test import AWSTestBase


class TestGlueClientWrapper(AWSTestBase):
    job_params = {
        "Name": "test-job",
        "Role": "arn:aws:iam::123456789012:role/GlueExecutionRole",
        "Command": {"Name": "glueetl", "ScriptLocation": "s3://scripts-bucket/main.py", "PythonVersion": "3"},
        "DefaultArguments": {"--job-language": "python", "--enable-metrics": ""},
        "GlueVersion": "4.0",
        "WorkerType": "G.1X",
        "NumberOfWorkers": 10,
        "Tags": {"team": "data"},
    }

    def test_create_get_delete(self, glue_client):
        assert get_glue_job(glue_client, "test-job") is None

        assert create_glue_job(glue_client, self.job_params) == "test-job"

        job = get_glue_job(glue_client, "test-job")
        assert job["Name"] == "test-job"
        assert job["Command"]["Name"] == "glueetl"
        assert job["DefaultArguments"] == {"--job-language": "python", "--enable-metrics": ""}
        assert job["WorkerType"] == "G.1X"

        delete_glue_job(glue_client, "test-job")
        assert get_glue_job(glue_client, "test-job") is None

    def test_delete_missing_job(self, glue_client):
        delete_glue_job(glue_client, "missing-job")

    def test_update_strips_create_only_params(self):
        glue_client = MagicMock()
        glue_client.update_job.return_value = {"JobName": "test-job"}

        assert update_glue_job(glue_client, self.job_params) == "test-job"

        glue_client.update_job.assert_called_once()
        kwargs = glue_client.update_job.call_args.kwargs
        assert kwargs["JobName"] == "test-job"
        assert "Name" not in kwargs["JobUpdate"]
        assert "Tags" not in kwargs["JobUpdate"]
        assert kwargs["JobUpdate"]["Command"] == self.job_params["Command"]

    def test_unexpected_errors_are_raised(self):
        glue_client = MagicMock()
        glue_client.get_job.side_effect = ClientError({"Error": {"Code": "AccessDeniedException", "Message": "denied"}}, "GetJob")

        with pytest.raises(ClientError):
            get_glue_job(glue_client, "test-job")

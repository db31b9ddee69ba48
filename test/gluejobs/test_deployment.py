# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
from unittest.mock import MagicMock

import boto3

import gluejobs.deployment as deployment
from gluejobs.core.monitoring import SparkUIProps
from gluejobs.core.resources import Code, Role
from gluejobs.core.scope import Stack
from gluejobs.definitions.aws.common import get_inlined_policy
from gluejobs.jobs import pyspark_etl_job, python_shell_job
from gluejobs.mixins.aws.test import AWSTestBase


class TestDeployment(AWSTestBase):
    def test_deploy_and_destroy(self, aws_credentials, tmp_path):
        self.patch_aws_start()
        try:
            script = tmp_path / "etl.py"
            script.write_text("print('etl')")

            session = self.session
            stack = self.new_stack(session=session)
            role = Role.for_glue_service(stack, "JobRole")
            job = pyspark_etl_job(stack, "EtlJob", Code.from_asset(script), role, spark_ui=SparkUIProps(prefix="logs/"))

            deployed = deployment.deploy(stack, session)

            assert deployed["JobRole"] == role.role_name
            assert deployed["EtlJob"] == job.job_name
            assert deployed["JobRoleDefaultPolicy"] == "JobRoleDefaultPolicy"

            # role and its grants
            iam = session.client("iam")
            assert iam.get_role(RoleName=role.role_name)["Role"]["Arn"] == role.role_arn
            deployment.attach_aws_managed_policy.assert_called_once_with(
                role.role_name, "arn:aws:iam::aws:policy/service-role/AWSGlueServiceRole", session
            )
            policy = get_inlined_policy(role.role_name, "JobRoleDefaultPolicy", session)
            assert policy == role.policy_document()

            # spark ui bucket and uploaded script
            s3 = session.client("s3")
            spark_ui_bucket = job.spark_ui_logging_location.bucket.bucket_name
            s3.head_bucket(Bucket=spark_ui_bucket)
            encryption = s3.get_bucket_encryption(Bucket=spark_ui_bucket)["ServerSideEncryptionConfiguration"]
            assert encryption["Rules"][0]["ApplyServerSideEncryptionByDefault"]["SSEAlgorithm"] == "AES256"
            [(key, _)] = stack.assets.items()
            obj = s3.get_object(Bucket=stack.asset_bucket_name, Key=key)
            assert obj["Body"].read() == b"print('etl')"

            # job
            glue = session.client("glue")
            created = glue.get_job(JobName=job.job_name)["Job"]
            assert created["Command"]["ScriptLocation"] == f"s3://{stack.asset_bucket_name}/{key}"
            assert created["DefaultArguments"]["--spark-event-logs-path"] == f"s3://{spark_ui_bucket}/logs/"

            deployment.destroy(stack, session)
            assert glue.get_jobs()["Jobs"] == []
        finally:
            self.patch_aws_stop()

    def test_existing_job_is_updated(self, aws_credentials):
        self.patch_aws_start()
        real_update_glue_job = deployment.update_glue_job
        real_put_inlined_policy = deployment.put_inlined_policy
        deployment.update_glue_job = MagicMock()
        try:
            session = self.session
            stack = self.new_stack(session=session)
            iam = session.client("iam")
            iam.create_role(RoleName="JobRole", AssumeRolePolicyDocument=json.dumps({"Version": "2012-10-17", "Statement": []}))
            role = self.imported_role(stack)
            job = python_shell_job(stack, "ShellJob", Code.from_s3_url("s3://scripts-bucket/shell.py"), role)

            deployment.deploy(stack, session)
            deployment.update_glue_job.assert_not_called()

            deployment.put_inlined_policy = MagicMock(wraps=real_put_inlined_policy)
            deployment.deploy(stack, session)
            deployment.update_glue_job.assert_called_once()
            # unchanged grants are not rewritten
            deployment.put_inlined_policy.assert_not_called()
            assert deployment.update_glue_job.call_args.args[1]["Name"] == job.job_name

            # imported role only gets the grants
            deployment.attach_aws_managed_policy.assert_not_called()
            assert get_inlined_policy("JobRole", "JobRoleDefaultPolicy", session) == role.policy_document()
        finally:
            deployment.update_glue_job = real_update_glue_job
            deployment.put_inlined_policy = real_put_inlined_policy
            self.patch_aws_stop()

    def test_account_resolved_from_caller_identity(self, aws_credentials, monkeypatch):
        monkeypatch.delenv("AWS_ACCOUNT_ID", raising=False)
        self.patch_aws_start()
        try:
            stack = Stack("sts-stack", region=self.region, session=boto3.Session(region_name=self.region))
            assert stack.account == self.account_id
        finally:
            self.patch_aws_stop()

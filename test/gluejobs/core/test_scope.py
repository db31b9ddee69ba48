# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json

import pytest

from gluejobs.core.errors import ConfigurationError, ValidationError
from gluejobs.core.resources import Bucket, Code, LogGroup, PolicyStatement, Role
from gluejobs.core.scope import Stack


class TestStack:
    account = "111122223333"
    region = "us-west-2"

    def _stack(self, name="my-stack", **kwargs) -> Stack:
        return Stack(name, account=self.account, region=self.region, **kwargs)

    def test_namespace_from_arguments(self):
        stack = self._stack()
        assert stack.account == self.account
        assert stack.region == self.region
        assert stack.partition == "aws"
        assert stack.asset_bucket_name == f"gluejobs-assets-{self.account}-{self.region}"

    def test_namespace_from_environment(self, monkeypatch):
        monkeypatch.setenv("AWS_ACCOUNT_ID", "444455556666")
        monkeypatch.setenv("AWS_REGION", "eu-west-1")
        stack = Stack("env-stack")
        assert stack.account == "444455556666"
        assert stack.region == "eu-west-1"

    def test_missing_region(self, monkeypatch):
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.delenv("AWS_DEFAULT_REGION", raising=False)
        with pytest.raises(ConfigurationError):
            Stack("no-region", account=self.account)

    def test_invalid_stack_name(self):
        with pytest.raises(ValidationError):
            self._stack("1-starts-with-digit")
        with pytest.raises(ValidationError):
            self._stack("under_score")

    def test_logical_ids_are_unique(self):
        stack = self._stack()
        # checking does not reserve
        assert stack.check_logical_id("My-Job_1") == "MyJob1"
        assert stack.allocate_logical_id("My-Job_1") == "MyJob1"
        with pytest.raises(ConfigurationError):
            stack.check_logical_id("MyJob1")
        with pytest.raises(ConfigurationError):
            stack.allocate_logical_id("MyJob1")
        with pytest.raises(ValidationError):
            stack.allocate_logical_id("--")

    def test_physical_names_are_deterministic(self):
        name = self._stack().generate_physical_name("EtlJob")
        assert name == self._stack().generate_physical_name("EtlJob")
        assert name.startswith("my-stack-EtlJob-")
        assert name != self._stack().generate_physical_name("OtherJob")
        # namespace is part of the digest
        assert name != Stack("my-stack", account=self.account, region="us-east-1").generate_physical_name("EtlJob")

    def test_physical_name_limits(self):
        stack = self._stack()
        name = stack.generate_physical_name("A" * 100, max_length=63, lowercase=True)
        assert len(name) <= 63
        assert name == name.lower()

    def test_format_arn(self):
        stack = self._stack()
        assert stack.format_arn("glue", "job/foo") == f"arn:aws:glue:{self.region}:{self.account}:job/foo"
        assert stack.format_arn("s3", "bucket", region="", account="") == "arn:aws:s3:::bucket"

    def test_emit_and_synth(self):
        stack = self._stack(description="test stack")
        reference = stack.emit("Thing", "AWS::Custom::Thing", {"Name": "thing", "Unset": None, "Nested": {"A": None, "B": 1}}, physical_name="thing")
        assert reference.logical_id == "Thing"
        assert reference.physical_name == "thing"
        assert stack.references["Thing"] == reference

        template = stack.synth()
        assert template["AWSTemplateFormatVersion"] == "2010-09-09"
        assert template["Description"] == "test stack"
        assert template["Resources"]["Thing"] == {"Type": "AWS::Custom::Thing", "Properties": {"Name": "thing", "Nested": {"B": 1}}}
        assert json.loads(stack.to_json()) == template

        with pytest.raises(ConfigurationError):
            stack.emit("Thing", "AWS::Custom::Thing", {})

    def test_add_asset(self, tmp_path):
        script = tmp_path / "job.py"
        script.write_text("print('hello')")
        stack = self._stack()

        bucket, key = stack.add_asset(script)
        assert bucket == stack.asset_bucket_name
        assert key.startswith("assets/") and key.endswith(".py")
        assert stack.assets == {key: script}

        with pytest.raises(ValidationError):
            stack.add_asset(tmp_path / "missing.py")


class TestResources:
    account = "111122223333"
    region = "us-west-2"

    def _stack(self) -> Stack:
        return Stack("res-stack", account=self.account, region=self.region)

    def test_imported_role(self):
        stack = self._stack()
        role = Role.from_role_arn(stack, "Imported", f"arn:aws:iam::{self.account}:role/service/MyRole")
        assert role.role_name == "MyRole"
        assert role.grant_principal is role
        # imported roles are not emitted and have no policy until something is granted
        assert stack.synth()["Resources"] == {}

        with pytest.raises(ValidationError):
            Role.from_role_arn(stack, "Bad", "MyRole")

    def test_glue_service_role(self):
        stack = self._stack()
        role = Role.for_glue_service(stack, "JobRole")
        assert role.role_arn == f"arn:aws:iam::{self.account}:role/{role.role_name}"
        assert len(role.role_name) <= 64

        resource = stack.synth()["Resources"]["JobRole"]
        assert resource["Type"] == "AWS::IAM::Role"
        assert resource["Properties"]["ManagedPolicyArns"] == ["arn:aws:iam::aws:policy/service-role/AWSGlueServiceRole"]
        assert resource["Properties"]["AssumeRolePolicyDocument"]["Statement"][0]["Principal"] == {"Service": "glue.amazonaws.com"}

    def test_grants_are_deduplicated_and_synthesized(self):
        stack = self._stack()
        role = Role.from_role_arn(stack, "Imported", f"arn:aws:iam::{self.account}:role/MyRole")
        bucket = Bucket.from_bucket_name(stack, "my-bucket")
        bucket.grant_read(role, "scripts/job.py")
        bucket.grant_read(role, "scripts/job.py")
        assert len(role.statements) == 1

        policy = stack.synth()["Resources"]["ImportedDefaultPolicy"]
        assert policy["Type"] == "AWS::IAM::Policy"
        assert policy["Properties"]["Roles"] == ["MyRole"]
        statement = policy["Properties"]["PolicyDocument"]["Statement"][0]
        assert statement["Resource"] == ["arn:aws:s3:::my-bucket", "arn:aws:s3:::my-bucket/scripts/job.py"]
        assert "s3:GetObject*" in statement["Action"]

    def test_new_bucket(self):
        stack = self._stack()
        bucket = Bucket(stack, "LogsBucket")
        assert bucket.bucket_name == bucket.bucket_name.lower()
        assert len(bucket.bucket_name) <= 63
        assert bucket.s3_url_for_object() == f"s3://{bucket.bucket_name}"
        assert bucket.s3_url_for_object("logs/") == f"s3://{bucket.bucket_name}/logs/"

        properties = stack.synth()["Resources"]["LogsBucket"]["Properties"]
        assert properties["BucketName"] == bucket.bucket_name
        assert properties["PublicAccessBlockConfiguration"]["BlockPublicAcls"]

    def test_log_group_grant(self):
        stack = self._stack()
        role = Role.from_role_arn(stack, "Imported", f"arn:aws:iam::{self.account}:role/MyRole")
        log_group = LogGroup.from_log_group_name(stack, "/aws-glue/my-jobs")
        statement = log_group.grant_write(role)
        assert statement == PolicyStatement(["logs:CreateLogStream", "logs:PutLogEvents"], [f"arn:aws:logs:{self.region}:{self.account}:log-group:/aws-glue/my-jobs:*"])

    def test_code_from_s3_url(self):
        stack = self._stack()
        role = Role.from_role_arn(stack, "Imported", f"arn:aws:iam::{self.account}:role/MyRole")
        code = Code.from_s3_url("s3://my-bucket/scripts/job.py")
        assert code.resolve(stack, role) == "s3://my-bucket/scripts/job.py"
        assert role.statements[0].resources == ["arn:aws:s3:::my-bucket", "arn:aws:s3:::my-bucket/scripts/job.py"]

        for invalid in ["https://my-bucket/job.py", "s3://my-bucket", "s3://my-bucket/", "my-bucket/job.py"]:
            with pytest.raises(ValidationError):
                Code.from_s3_url(invalid)

    def test_code_from_bucket(self):
        stack = self._stack()
        bucket = Bucket.from_bucket_name(stack, "my-bucket")
        assert Code.from_bucket(bucket, "job.py").resolve(stack) == "s3://my-bucket/job.py"
        with pytest.raises(ValidationError):
            Code.from_bucket(bucket, "")

    def test_code_from_asset(self, tmp_path):
        script = tmp_path / "job.py"
        script.write_text("print('hello')")
        stack = self._stack()
        location = Code.from_asset(str(script)).resolve(stack)
        assert location.startswith(f"s3://{stack.asset_bucket_name}/assets/")
        assert len(stack.assets) == 1

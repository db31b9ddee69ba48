# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import os
from typing import Optional
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

import gluejobs.deployment as deployment
from gluejobs.core.resources import Role
from gluejobs.core.scope import Stack


class AWSTestBase:
    testing_keyname = "testing"
    region = "us-east-1"
    # default moto acc id
    account_id = "123456789012"

    @pytest.fixture(scope="class")
    def aws_credentials(self):
        os.environ["AWS_ACCESS_KEY_ID"] = self.testing_keyname
        os.environ["AWS_SECRET_ACCESS_KEY"] = self.testing_keyname
        os.environ["AWS_SECURITY_TOKEN"] = self.testing_keyname
        os.environ["AWS_SESSION_TOKEN"] = self.testing_keyname
        os.environ["AWS_DEFAULT_REGION"] = self.region

    @pytest.fixture(scope="class")
    def glue_client(self, aws_credentials):
        with mock_aws():
            yield boto3.client(service_name="glue", region_name=self.region)

    @pytest.fixture(scope="class")
    def s3_resource(self, aws_credentials):
        with mock_aws():
            yield boto3.resource(service_name="s3", region_name=self.region)

    @pytest.fixture(scope="class")
    def iam_client(self, aws_credentials):
        with mock_aws():
            yield boto3.client(service_name="iam", region_name=self.region)

    # COMPENSATE MOTO
    #  AWS managed policies are not guaranteed to be loaded into the mocked IAM backend
    _real_attach_aws_managed_policy = deployment.attach_aws_managed_policy

    def patch_aws_start(self) -> None:
        self._aws_mock = mock_aws()
        self._aws_mock.start()
        deployment.attach_aws_managed_policy = MagicMock()

    def patch_aws_stop(self) -> None:
        deployment.attach_aws_managed_policy = AWSTestBase._real_attach_aws_managed_policy
        self._aws_mock.stop()

    @property
    def session(self) -> boto3.Session:
        return boto3.Session(region_name=self.region)

    def new_stack(self, stack_name: str = "test-stack", session: Optional[boto3.Session] = None) -> Stack:
        return Stack(stack_name, account=self.account_id, region=self.region, session=session)

    def imported_role(self, stack: Stack, construct_id: str = "JobRole") -> Role:
        return Role.from_role_arn(stack, construct_id, f"arn:aws:iam::{self.account_id}:role/{construct_id}")

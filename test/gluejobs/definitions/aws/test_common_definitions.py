# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

import gluejobs.definitions.aws.common as common
from gluejobs.definitions.aws.common import (
    exponential_retry,
    get_aws_account_id_from_arn,
    get_code_for_exception,
    get_inlined_policy,
    get_trust_policy,
    normalize_policy_arn,
    put_inlined_policy,
)


def _client_error(code: str) -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "test"}}, "TestOperation")


class TestCommonDefinitions:
    def test_get_code_for_exception(self):
        assert get_code_for_exception(_client_error("Throttling")) == "Throttling"
        assert get_code_for_exception(ValueError("bad")) == "ValueError"

    def test_account_id_from_arn(self):
        assert get_aws_account_id_from_arn("arn:aws:sts::123456789012:assumed-role/Admin/session") == "123456789012"

    def test_trust_policy(self):
        assert get_trust_policy(["glue.amazonaws.com"]) == {
            "Version": "2012-10-17",
            "Statement": [{"Effect": "Allow", "Principal": {"Service": "glue.amazonaws.com"}, "Action": "sts:AssumeRole"}],
        }

    def test_normalize_policy_arn(self):
        assert normalize_policy_arn("service-role/AWSGlueServiceRole") == "arn:aws:iam::aws:policy/service-role/AWSGlueServiceRole"
        assert normalize_policy_arn("AWSGlueConsoleFullAccess", "aws-cn") == "arn:aws-cn:iam::aws:policy/AWSGlueConsoleFullAccess"
        assert normalize_policy_arn("arn:aws:iam::123456789012:policy/Custom") == "arn:aws:iam::123456789012:policy/Custom"

    def test_exponential_retry_recovers(self, monkeypatch):
        monkeypatch.setattr(common.time, "sleep", MagicMock())
        func = MagicMock(side_effect=[_client_error("ServiceFailureException"), "done"])

        assert exponential_retry(func, ["ServiceFailureException"], "a", key="b") == "done"
        assert func.call_count == 2
        func.assert_called_with("a", key="b")

    def test_exponential_retry_gives_up(self, monkeypatch):
        monkeypatch.setattr(common.time, "sleep", MagicMock())
        func = MagicMock(side_effect=_client_error("Throttling"))

        with pytest.raises(ClientError):
            exponential_retry(func, [], _max_sleep_time_in_secs=4)
        # sleeps 1 then 2, max sleep reached after the second attempt
        assert func.call_count == 2

    def test_non_retryable_errors_are_raised(self):
        func = MagicMock(side_effect=_client_error("AccessDenied"))
        with pytest.raises(ClientError):
            exponential_retry(func, [])
        assert func.call_count == 1

    def test_inlined_policy(self):
        session = MagicMock()
        iam = MagicMock()
        session.client.return_value = iam
        document = {"Version": "2012-10-17", "Statement": []}

        put_inlined_policy("MyRole", "MyPolicy", document, session)
        iam.put_role_policy.assert_called_once_with(PolicyDocument=json.dumps(document), PolicyName="MyPolicy", RoleName="MyRole")

        iam.get_role_policy.return_value = {"PolicyDocument": json.dumps(document)}
        assert get_inlined_policy("MyRole", "MyPolicy", session) == document

        iam.get_role_policy.side_effect = _client_error("NoSuchEntity")
        assert get_inlined_policy("MyRole", "Missing", session) is None

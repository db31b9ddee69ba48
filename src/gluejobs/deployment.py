# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Provision a synthesized :class:`Stack` directly through the AWS APIs.

This is an alternative to deploying the template via CloudFormation. Resources are created in dependency order:

    buckets (and the asset bucket) -> assets -> roles -> role policies -> glue jobs

Existing buckets and roles are kept as is, existing glue jobs are updated.
"""

import logging
from typing import Any, Dict, Optional

import boto3

from .core.resources import BLOCK_ALL_PUBLIC_ACCESS, BUCKET_ENCRYPTION
from .core.scope import Stack
from .definitions.aws.common import attach_aws_managed_policy, create_role, get_inlined_policy, has_role, put_inlined_policy
from .definitions.aws.glue.client_wrapper import create_glue_job, delete_glue_job, get_glue_job, update_glue_job
from .definitions.aws.s3.bucket_wrapper import bucket_exists, create_bucket, put_encryption, put_public_access_block, upload_file
from .utils.digest import calculate_file_sha256

logger = logging.getLogger(__name__)


def _resources_of_type(template: Dict[str, Any], resource_type: str) -> Dict[str, Dict[str, Any]]:
    return {logical_id: resource["Properties"] for logical_id, resource in template["Resources"].items() if resource["Type"] == resource_type}


def _encryption_rules(bucket_encryption: Dict[str, Any]) -> Dict[str, Any]:
    # template uses "ServerSideEncryptionByDefault", the S3 API "ApplyServerSideEncryptionByDefault"
    return {
        "Rules": [
            {"ApplyServerSideEncryptionByDefault": rule["ServerSideEncryptionByDefault"]}
            for rule in bucket_encryption["ServerSideEncryptionConfiguration"]
        ]
    }


def _deploy_bucket(s3, region: str, bucket_name: str, properties: Dict[str, Any]) -> None:
    if bucket_exists(s3, bucket_name):
        return
    create_bucket(s3, bucket_name, region)
    if "BucketEncryption" in properties:
        put_encryption(s3, bucket_name, _encryption_rules(properties["BucketEncryption"]))
    if "PublicAccessBlockConfiguration" in properties:
        put_public_access_block(s3, bucket_name, properties["PublicAccessBlockConfiguration"])


def deploy(stack: Stack, session: Optional[boto3.Session] = None) -> Dict[str, str]:
    """Returns the physical names of the provisioned resources keyed by their logical ids"""
    session = session if session else boto3.Session(region_name=stack.region)
    template = stack.synth()
    s3 = session.resource("s3", region_name=stack.region)
    glue = session.client("glue", region_name=stack.region)
    deployed: Dict[str, str] = dict()

    logger.info("Deploying stack %s into account %s region %s...", stack.stack_name, stack.account, stack.region)
    for logical_id, properties in _resources_of_type(template, "AWS::S3::Bucket").items():
        _deploy_bucket(s3, stack.region, properties["BucketName"], properties)
        deployed[logical_id] = properties["BucketName"]

    assets = stack.assets
    if assets:
        _deploy_bucket(
            s3,
            stack.region,
            stack.asset_bucket_name,
            {"BucketEncryption": BUCKET_ENCRYPTION, "PublicAccessBlockConfiguration": BLOCK_ALL_PUBLIC_ACCESS},
        )
        for key, path in assets.items():
            upload_file(s3, stack.asset_bucket_name, key, path, metadata={"sha256": calculate_file_sha256(path)})

    for logical_id, properties in _resources_of_type(template, "AWS::IAM::Role").items():
        role_name = properties["RoleName"]
        if not has_role(role_name, session):
            create_role(role_name, session, properties["AssumeRolePolicyDocument"], properties.get("Description"))
        for policy_arn in properties.get("ManagedPolicyArns", []):
            attach_aws_managed_policy(role_name, policy_arn, session)
        deployed[logical_id] = role_name

    for logical_id, properties in _resources_of_type(template, "AWS::IAM::Policy").items():
        for role_name in properties["Roles"]:
            if get_inlined_policy(role_name, properties["PolicyName"], session) == properties["PolicyDocument"]:
                logger.info("Inlined policy %s on role %s is up to date", properties["PolicyName"], role_name)
                continue
            put_inlined_policy(role_name, properties["PolicyName"], properties["PolicyDocument"], session)
        deployed[logical_id] = properties["PolicyName"]

    for logical_id, properties in _resources_of_type(template, "AWS::Glue::Job").items():
        if get_glue_job(glue, properties["Name"]):
            update_glue_job(glue, properties)
        else:
            create_glue_job(glue, properties)
        deployed[logical_id] = properties["Name"]

    logger.info("Deployed stack %s: %s", stack.stack_name, deployed)
    return deployed


def destroy(stack: Stack, session: Optional[boto3.Session] = None) -> None:
    """Deletes the glue jobs of the stack. Buckets (which might hold logs), roles and policies are retained."""
    session = session if session else boto3.Session(region_name=stack.region)
    glue = session.client("glue", region_name=stack.region)
    for properties in _resources_of_type(stack.synth(), "AWS::Glue::Job").values():
        delete_glue_job(glue, properties["Name"])
        logger.info("Deleted glue job %s", properties["Name"])

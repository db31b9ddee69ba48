# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

import logging
from pathlib import Path
from typing import Dict, Optional

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)

"""
Refer
https://github.com/awsdocs/aws-doc-sdk-examples/blob/master/python/example_code/s3/s3_basics/bucket_wrapper.py
"""

MAX_BUCKET_LEN = 63


def create_bucket(s3, name, region):
    """
    Create an Amazon S3 bucket with the specified name and in the specified Region.
    :param name: The name of the bucket to create. This name must be globally unique
                 and must adhere to bucket naming requirements.
    :param region: The Region in which to create the bucket. 'us-east-1' must not be passed as a LocationConstraint.
    :return: The newly created bucket.
    """

    try:
        if region != "us-east-1":
            bucket = s3.create_bucket(Bucket=name, CreateBucketConfiguration={"LocationConstraint": region})
        else:
            bucket = s3.create_bucket(Bucket=name)

        bucket.wait_until_exists()

        logger.info("Created bucket '%s' in region=%s", bucket.name, s3.meta.client.meta.region_name)
    except ClientError as error:
        logger.exception("Couldn't create bucket named '%s' in region=%s.", name, region)
        if error.response["Error"]["Code"] == "IllegalLocationConstraintException":
            logger.error(
                "When the session Region is anything other than us-east-1, "
                "you must specify a LocationConstraint that matches the "
                "session Region. The current session Region is %s and the "
                "LocationConstraint Region is %s.",
                s3.meta.client.meta.region_name,
                region,
            )
        raise error
    else:
        return bucket


def bucket_exists(s3, bucket_name):
    """
    Determine whether a bucket with the specified name exists.
    :param bucket_name: The name of the bucket to check.
    :return: True when the bucket exists; otherwise, False.
    """
    try:
        s3.meta.client.head_bucket(Bucket=bucket_name)
        logger.info("Bucket %s exists.", bucket_name)
        exists = True
    except ClientError:
        logger.warning("Bucket %s doesn't exist or you don't have access to it.", bucket_name)
        exists = False
    return exists


def put_public_access_block(s3, bucket_name: str, configuration: Dict[str, bool]) -> None:
    try:
        s3.meta.client.put_public_access_block(Bucket=bucket_name, PublicAccessBlockConfiguration=configuration)
        logger.info("Put public access block %s for bucket '%s'.", configuration, bucket_name)
    except ClientError:
        logger.exception("Couldn't put public access block for bucket '%s'.", bucket_name)
        raise


def put_encryption(s3, bucket_name: str, encryption_configuration: Dict) -> None:
    try:
        s3.meta.client.put_bucket_encryption(Bucket=bucket_name, ServerSideEncryptionConfiguration=encryption_configuration)
        logger.info("Put encryption %s for bucket '%s'.", encryption_configuration, bucket_name)
    except ClientError:
        logger.exception("Couldn't put encryption for bucket '%s'.", bucket_name)
        raise


def upload_file(s3, bucket_name: str, object_key: str, path: Path, metadata: Optional[Dict[str, str]] = None) -> None:
    """
    Upload a local file to the bucket.
    :param s3: S3 resource.
    :param metadata: user metadata to be attached to the object (ex: {'sha256': ...}).
    """
    extra_args = {"Metadata": metadata} if metadata else None
    try:
        s3.Bucket(bucket_name).upload_file(str(path), object_key, ExtraArgs=extra_args)
        logger.info("Uploaded '%s' to 's3://%s/%s'.", str(path), bucket_name, object_key)
    except ClientError:
        logger.exception("Couldn't upload '%s' to bucket '%s'.", str(path), bucket_name)
        raise

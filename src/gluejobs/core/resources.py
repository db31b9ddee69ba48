# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Collaborators of a job definition: the execution role, S3 buckets, log groups and the script reference.

These either reference existing AWS resources (``from_*`` factories) or emit new ones into the owning :class:`Stack`.
Grants never touch a resource directly, they are accumulated on the grantee role and synthesized as its default policy.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union
from urllib.parse import urlparse

from overrides import overrides

from ..definitions.aws.common import AWS_GLUE_SERVICE_PRINCIPAL, AWS_GLUE_SERVICE_ROLE_POLICY, get_trust_policy, normalize_policy_arn
from ..definitions.aws.s3.bucket_wrapper import MAX_BUCKET_LEN
from .entity import CoreData
from .errors import ValidationError
from .scope import Stack

AWS_MAX_ROLE_NAME_SIZE = 64

BUCKET_READ_ACTIONS = ["s3:GetObject*", "s3:GetBucket*", "s3:List*"]
BUCKET_WRITE_ACTIONS = [
    "s3:DeleteObject*",
    "s3:PutObject",
    "s3:PutObjectLegalHold",
    "s3:PutObjectRetention",
    "s3:PutObjectTagging",
    "s3:PutObjectVersionTagging",
    "s3:Abort*",
]
LOG_GROUP_WRITE_ACTIONS = ["logs:CreateLogStream", "logs:PutLogEvents"]

BUCKET_ENCRYPTION = {"ServerSideEncryptionConfiguration": [{"ServerSideEncryptionByDefault": {"SSEAlgorithm": "AES256"}}]}
BLOCK_ALL_PUBLIC_ACCESS = {
    "BlockPublicAcls": True,
    "BlockPublicPolicy": True,
    "IgnorePublicAcls": True,
    "RestrictPublicBuckets": True,
}


class PolicyStatement(CoreData):
    def __init__(self, actions: Sequence[str], resources: Sequence[str], effect: str = "Allow") -> None:
        self.actions = list(dict.fromkeys(actions))
        self.resources = list(dict.fromkeys(resources))
        self.effect = effect

    def to_json(self) -> Dict[str, Any]:
        return {"Effect": self.effect, "Action": list(self.actions), "Resource": list(self.resources)}


class Role:
    """Execution identity of a job.

    A role passed in by the caller is never modified except for the grants that the job explicitly needs (script read,
    Spark UI bucket, log group write). Use :meth:`for_glue_service` to get a new role that already has the standard
    AWS Glue service policy attached.
    """

    def __init__(self, scope: Stack, construct_id: str, role_arn: str, role_name: str) -> None:
        self.scope = scope
        self.logical_id = scope.allocate_logical_id(construct_id)
        self.role_arn = role_arn
        self.role_name = role_name
        self.statements: List[PolicyStatement] = []
        scope.register_role(self)

    @classmethod
    def from_role_arn(cls, scope: Stack, construct_id: str, role_arn: str) -> "Role":
        if not role_arn or not role_arn.startswith("arn:") or ":role/" not in role_arn:
            raise ValidationError(f"{role_arn!r} is not a valid IAM role ARN!")
        return cls(scope, construct_id, role_arn, role_arn.split("/")[-1])

    @classmethod
    def for_glue_service(
        cls,
        scope: Stack,
        construct_id: str,
        role_name: Optional[str] = None,
        managed_policies: Sequence[str] = (AWS_GLUE_SERVICE_ROLE_POLICY,),
        description: Optional[str] = None,
    ) -> "Role":
        role_name = role_name if role_name else scope.generate_physical_name(construct_id, max_length=AWS_MAX_ROLE_NAME_SIZE)
        role = cls(scope, construct_id, scope.format_arn("iam", f"role/{role_name}", region=""), role_name)
        scope.emit(
            role.logical_id,
            "AWS::IAM::Role",
            {
                "RoleName": role_name,
                "Description": description,
                "AssumeRolePolicyDocument": get_trust_policy([AWS_GLUE_SERVICE_PRINCIPAL]),
                "ManagedPolicyArns": [normalize_policy_arn(policy, scope.partition) for policy in managed_policies],
            },
            physical_name=role_name,
        )
        return role

    @property
    def grant_principal(self) -> "Role":
        return self

    def add_to_policy(self, statement: PolicyStatement) -> None:
        if statement not in self.statements:
            self.statements.append(statement)

    def policy_document(self) -> Dict[str, Any]:
        return {"Version": "2012-10-17", "Statement": [statement.to_json() for statement in self.statements]}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(role_arn={self.role_arn!r})"


class Bucket:
    def __init__(self, scope: Stack, construct_id: str, bucket_name: Optional[str] = None, _imported: bool = False) -> None:
        self.scope = scope
        if _imported:
            self.logical_id = None
            self.bucket_name = bucket_name
        else:
            self.logical_id = scope.allocate_logical_id(construct_id)
            self.bucket_name = bucket_name if bucket_name else scope.generate_physical_name(construct_id, max_length=MAX_BUCKET_LEN, lowercase=True)
            scope.emit(
                self.logical_id,
                "AWS::S3::Bucket",
                {
                    "BucketName": self.bucket_name,
                    "BucketEncryption": BUCKET_ENCRYPTION,
                    "PublicAccessBlockConfiguration": BLOCK_ALL_PUBLIC_ACCESS,
                },
                physical_name=self.bucket_name,
            )

    @classmethod
    def from_bucket_name(cls, scope: Stack, bucket_name: str) -> "Bucket":
        if not bucket_name or len(bucket_name) > MAX_BUCKET_LEN:
            raise ValidationError(f"{bucket_name!r} is not a valid S3 bucket name!")
        return cls(scope, bucket_name, bucket_name, _imported=True)

    @property
    def bucket_arn(self) -> str:
        return self.scope.format_arn("s3", self.bucket_name, region="", account="")

    def arn_for_objects(self, key_pattern: str) -> str:
        return f"{self.bucket_arn}/{key_pattern}"

    def s3_url_for_object(self, key: Optional[str] = None) -> str:
        return f"s3://{self.bucket_name}/{key}" if key else f"s3://{self.bucket_name}"

    def grant_read(self, identity: Role, objects_key_pattern: str = "*") -> PolicyStatement:
        statement = PolicyStatement(BUCKET_READ_ACTIONS, [self.bucket_arn, self.arn_for_objects(objects_key_pattern)])
        identity.grant_principal.add_to_policy(statement)
        return statement

    def grant_read_write(self, identity: Role, objects_key_pattern: str = "*") -> PolicyStatement:
        statement = PolicyStatement(BUCKET_READ_ACTIONS + BUCKET_WRITE_ACTIONS, [self.bucket_arn, self.arn_for_objects(objects_key_pattern)])
        identity.grant_principal.add_to_policy(statement)
        return statement

    def __eq__(self, other) -> bool:
        return isinstance(other, Bucket) and other.bucket_name == self.bucket_name

    def __hash__(self) -> int:
        return hash(self.bucket_name)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(bucket_name={self.bucket_name!r})"


class LogGroup:
    def __init__(self, scope: Stack, log_group_name: str) -> None:
        self.scope = scope
        self.log_group_name = log_group_name

    @classmethod
    def from_log_group_name(cls, scope: Stack, log_group_name: str) -> "LogGroup":
        return cls(scope, log_group_name)

    @property
    def log_group_arn(self) -> str:
        return self.scope.format_arn("logs", f"log-group:{self.log_group_name}:*")

    def grant_write(self, identity: Role) -> PolicyStatement:
        statement = PolicyStatement(LOG_GROUP_WRITE_ACTIONS, [self.log_group_arn])
        identity.grant_principal.add_to_policy(statement)
        return statement

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(log_group_name={self.log_group_name!r})"


class Code(ABC):
    """Reference to the executable script of a job"""

    @abstractmethod
    def resolve(self, scope: Stack, grantee: Optional[Role] = None) -> str:
        """Returns the S3 url of the script and grants 'grantee' read access to it"""
        ...

    def validate(self) -> None:
        """Raises if the reference cannot be resolved. Called before anything is granted."""

    @classmethod
    def of(cls, code: Union["Code", str]) -> "Code":
        return cls.from_s3_url(code) if isinstance(code, str) else code

    @classmethod
    def from_s3_url(cls, url: str) -> "S3Code":
        parsed = urlparse(url)
        key = parsed.path.lstrip("/")
        if parsed.scheme != "s3" or not parsed.netloc or not key:
            raise ValidationError(f"Script location {url!r} must be an S3 object url (s3://<bucket>/<key>)!")
        return S3Code(parsed.netloc, key)

    @classmethod
    def from_bucket(cls, bucket: Bucket, key: str) -> "S3Code":
        if not key:
            raise ValidationError(f"Script key for bucket {bucket.bucket_name!r} must not be empty!")
        return S3Code(bucket.bucket_name, key)

    @classmethod
    def from_asset(cls, path: Union[str, Path]) -> "AssetCode":
        return AssetCode(Path(path))


class S3Code(Code):
    def __init__(self, bucket_name: str, key: str) -> None:
        self.bucket_name = bucket_name
        self.key = key

    @overrides
    def resolve(self, scope: Stack, grantee: Optional[Role] = None) -> str:
        if grantee is not None:
            Bucket.from_bucket_name(scope, self.bucket_name).grant_read(grantee, self.key)
        return f"s3://{self.bucket_name}/{self.key}"


class AssetCode(Code):
    """Local file that gets uploaded to the asset bucket of the stack during deployment"""

    def __init__(self, path: Path) -> None:
        self.path = path

    @overrides
    def validate(self) -> None:
        if not self.path.is_file():
            raise ValidationError(f"Asset {str(self.path)!r} does not exist or is not a file!")

    @overrides
    def resolve(self, scope: Stack, grantee: Optional[Role] = None) -> str:
        bucket_name, key = scope.add_asset(self.path)
        return S3Code(bucket_name, key).resolve(scope, grantee)

# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

"""Provisioning scope and the resource emitter interface.

A :class:`Stack` owns the namespace (partition, account, region, stack name) that every construct is defined in. It hands
out unique logical ids and deterministic physical names, collects the emitted resources and finally synthesizes them into
a CloudFormation shaped template. Account and region are resolved in the following order:

    - explicit constructor arguments
    - 'AWS_ACCOUNT_ID' / 'AWS_REGION' (or 'AWS_DEFAULT_REGION') environment variables
    - the boto session (region of the session, account of the caller identity)
"""

import json
import logging
import os
import re
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Tuple

import boto3
from overrides import overrides

from ..definitions.aws.common import get_aws_account_id
from ..utils.digest import calculate_file_sha256, short_digest
from .entity import CoreData
from .errors import ConfigurationError, ValidationError

if TYPE_CHECKING:
    from .resources import Role

logger = logging.getLogger(__name__)

ENV_ACCOUNT_ID = "AWS_ACCOUNT_ID"
ENV_REGION = "AWS_REGION"
ENV_DEFAULT_REGION = "AWS_DEFAULT_REGION"

TEMPLATE_FORMAT_VERSION = "2010-09-09"
ASSET_BUCKET_NAME_FORMAT = "gluejobs-assets-{}-{}"
ASSET_KEY_PREFIX = "assets/"

_STACK_NAME_PATTERN = re.compile(r"^[A-Za-z][A-Za-z0-9-]{0,127}$")


class ResourceReference(CoreData):
    """What the emitter hands back for an emitted resource"""

    def __init__(self, logical_id: str, resource_type: str, physical_name: Optional[str]) -> None:
        self.logical_id = logical_id
        self.resource_type = resource_type
        self.physical_name = physical_name


class ResourceEmitter(ABC):
    @abstractmethod
    def emit(self, logical_id: str, resource_type: str, properties: Dict[str, Any], physical_name: Optional[str] = None) -> ResourceReference:
        """Declare a resource with its fully resolved properties and return a reference to it"""
        ...


def compact(value: Any) -> Any:
    """Drops None values (recursively) so that unset properties do not appear in the template"""
    if isinstance(value, dict):
        return {k: compact(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [compact(v) for v in value if v is not None]
    return value


class Stack(ResourceEmitter):
    def __init__(
        self,
        stack_name: str,
        account: Optional[str] = None,
        region: Optional[str] = None,
        partition: str = "aws",
        session: Optional[boto3.Session] = None,
        asset_bucket_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        if not _STACK_NAME_PATTERN.match(stack_name or ""):
            raise ValidationError(f"Stack name {stack_name!r} is not valid! It must start with a letter and contain only alphanumerics or '-'.")
        self.stack_name = stack_name
        self.partition = partition
        self.description = description

        self.region = region or os.environ.get(ENV_REGION) or os.environ.get(ENV_DEFAULT_REGION) or (session.region_name if session else None)
        if not self.region:
            raise ConfigurationError(f"Region for stack {stack_name!r} could not be resolved! Pass 'region' or set {ENV_REGION!r}.")

        self.account = account or os.environ.get(ENV_ACCOUNT_ID)
        if not self.account:
            logger.info("Account for stack %s not provided, resolving it from the caller identity...", stack_name)
            self.account = get_aws_account_id(session if session else boto3.Session(region_name=self.region), self.region)

        self.asset_bucket_name = asset_bucket_name or ASSET_BUCKET_NAME_FORMAT.format(self.account, self.region)

        self._logical_ids: Set[str] = set()
        self._resources: Dict[str, Dict[str, Any]] = dict()
        self._references: Dict[str, ResourceReference] = dict()
        self._roles: List["Role"] = []
        self._assets: Dict[str, Path] = dict()

    # naming
    def check_logical_id(self, construct_id: str) -> str:
        """Returns the logical id for 'construct_id' without reserving it"""
        logical_id = re.sub(r"[^A-Za-z0-9]", "", construct_id or "")
        if not logical_id:
            raise ValidationError(f"Construct id {construct_id!r} must contain at least one alphanumeric character!")
        if logical_id in self._logical_ids:
            raise ConfigurationError(f"There is already a construct with id {construct_id!r} in stack {self.stack_name!r}!")
        return logical_id

    def allocate_logical_id(self, construct_id: str) -> str:
        logical_id = self.check_logical_id(construct_id)
        self._logical_ids.add(logical_id)
        return logical_id

    def generate_physical_name(self, construct_id: str, max_length: int = 255, lowercase: bool = False) -> str:
        """Deterministic name derived from the stack namespace and the construct id.

        The digest suffix keeps names unique across accounts/regions while the readable part is truncated to fit into
        'max_length'.
        """
        digest = short_digest(f"{self.partition}/{self.account}/{self.region}/{self.stack_name}/{construct_id}")
        base = f"{self.stack_name}-{construct_id}"
        if lowercase:
            digest = digest.lower()
            base = re.sub(r"[^a-z0-9-]", "-", base.lower())
        base = base[: max_length - len(digest) - 1].rstrip("-")
        return f"{base}-{digest}"

    def format_arn(self, service: str, resource: str, region: Optional[str] = None, account: Optional[str] = None) -> str:
        return "arn:{}:{}:{}:{}:{}".format(
            self.partition,
            service,
            self.region if region is None else region,
            self.account if account is None else account,
            resource,
        )

    # emission
    @overrides
    def emit(self, logical_id: str, resource_type: str, properties: Dict[str, Any], physical_name: Optional[str] = None) -> ResourceReference:
        if logical_id in self._resources:
            raise ConfigurationError(f"Resource {logical_id!r} is already emitted in stack {self.stack_name!r}!")
        self._resources[logical_id] = {"Type": resource_type, "Properties": compact(properties)}
        reference = ResourceReference(logical_id, resource_type, physical_name)
        self._references[logical_id] = reference
        logger.debug("Emitted %s %s (physical name: %s)", resource_type, logical_id, physical_name)
        return reference

    def register_role(self, role: "Role") -> None:
        self._roles.append(role)

    def add_asset(self, path: Path) -> Tuple[str, str]:
        """Stage a local file, returns the (bucket, key) it will be uploaded to during deployment."""
        path = Path(path)
        if not path.is_file():
            raise ValidationError(f"Asset {str(path)!r} does not exist or is not a file!")
        key = f"{ASSET_KEY_PREFIX}{calculate_file_sha256(path)}{path.suffix}"
        self._assets[key] = path
        return self.asset_bucket_name, key

    @property
    def assets(self) -> Dict[str, Path]:
        return dict(self._assets)

    @property
    def references(self) -> Dict[str, ResourceReference]:
        return dict(self._references)

    def _policy_resources(self) -> Dict[str, Dict[str, Any]]:
        policies = dict()
        for role in self._roles:
            if role.statements:
                policy_name = f"{role.logical_id}DefaultPolicy"
                policies[policy_name] = {
                    "Type": "AWS::IAM::Policy",
                    "Properties": {
                        "PolicyName": policy_name,
                        "PolicyDocument": role.policy_document(),
                        "Roles": [role.role_name],
                    },
                }
        return policies

    def synth(self) -> Dict[str, Any]:
        resources = dict(self._resources)
        resources.update(self._policy_resources())
        template = {"AWSTemplateFormatVersion": TEMPLATE_FORMAT_VERSION}
        if self.description:
            template["Description"] = self.description
        template["Resources"] = resources
        return template

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.synth(), indent=indent)

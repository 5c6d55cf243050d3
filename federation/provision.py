"""
Direct-API rendition of the OIDC role stack.

Runs the same resource graph the CDK stack declares, one IAM call at a time:

  fetch-certificate -> register-provider -> build-trust-policy -> create-role
  -> build-permission-policy -> create-policy -> attach-policy

The first failing step stops the run. Nothing is retried or rolled back;
re-running against an account that already holds some of the resources fails
with the IAM naming-conflict error of the first existing one.
"""
from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from federation.config import FederationConfig
from federation.errors import ProvisioningError
from federation.policy import trust_policy_document
from federation.thumbprint import fetch_thumbprint

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ProvisionResult:
    thumbprint: str
    provider_arn: str
    role_arn: str
    policy_arn: str

@contextmanager
def _step(name: str) -> Iterator[None]:
    logger.info("step_started step=%s", name)
    try:
        yield
    except (ClientError, BotoCoreError, OSError, ValueError) as e:
        logger.error("step_failed step=%s error=%s", name, e)
        raise ProvisioningError(name, str(e)) from e
    logger.info("step_finished step=%s", name)

def _tags(config: FederationConfig) -> List[dict]:
    return [{"Key": k, "Value": v} for k, v in sorted(config.tags.items())]

def provision(iam: Any, config: FederationConfig, thumbprint: str) -> ProvisionResult:
    """Create provider, role and permissions policy in dependency order."""
    tags = _tags(config)

    with _step("register-provider"):
        provider_arn = iam.create_open_id_connect_provider(
            Url=config.issuer_url,
            ClientIDList=[config.audience],
            ThumbprintList=[thumbprint],
            Tags=tags,
        )["OpenIDConnectProviderArn"]
    logger.info("provider_registered provider_arn=%s", provider_arn)

    with _step("build-trust-policy"):
        trust_policy = trust_policy_document(
            config.issuer_url, provider_arn, config.audience, config.subject_pattern
        )

    with _step("create-role"):
        role_arn = iam.create_role(
            RoleName=config.role_name,
            AssumeRolePolicyDocument=json.dumps(trust_policy),
            Description=config.description,
            Tags=tags,
        )["Role"]["Arn"]
    logger.info("role_created role_name=%s role_arn=%s", config.role_name, role_arn)

    with _step("build-permission-policy"):
        document = json.dumps(config.permissions_document)

    with _step("create-policy"):
        policy_arn = iam.create_policy(
            PolicyName=config.policy_name,
            PolicyDocument=document,
            Description=f"Permissions for {config.role_name}",
            Tags=tags,
        )["Policy"]["Arn"]

    with _step("attach-policy"):
        iam.attach_role_policy(RoleName=config.role_name, PolicyArn=policy_arn)
    logger.info("policy_attached role_name=%s policy_arn=%s", config.role_name, policy_arn)

    return ProvisionResult(
        thumbprint=thumbprint,
        provider_arn=provider_arn,
        role_arn=role_arn,
        policy_arn=policy_arn,
    )

def run(
    config: FederationConfig,
    *,
    session: Optional[boto3.session.Session] = None,
    thumbprint: Optional[str] = None,
) -> ProvisionResult:
    thumbprint = thumbprint or config.thumbprint
    if not thumbprint:
        with _step("fetch-certificate"):
            thumbprint = fetch_thumbprint(config.issuer_url)

    session = session or boto3.session.Session(region_name=config.region)
    iam = session.client("iam", region_name=config.region)
    return provision(iam, config, thumbprint)

from typing import List

from aws_cdk import CfnOutput, Stack, aws_iam as iam, aws_ssm as ssm
from constructs import Construct

from federation.config import FederationConfig
from federation.policy import ASSUME_ROLE_ACTION, trust_conditions

class OidcStack(Stack):
    """
    GitHub Actions OIDC role.

    The subject pattern in the trust conditions limits which repositories/branches
    can assume the role. Permissions come from the caller-supplied document.
    """

    def __init__(
        self,
        scope: Construct,
        construct_id: str,
        config: FederationConfig,
        thumbprints: List[str],
        **kwargs,
    ):
        super().__init__(scope, construct_id, **kwargs)

        self.provider = iam.OpenIdConnectProvider(
            self,
            "GitHubProvider",
            url=config.issuer_url,
            client_ids=[config.audience],
            thumbprints=thumbprints,
        )

        self.role = iam.Role(
            self,
            "GitHubActionsRole",
            role_name=config.role_name,
            description=config.description,
            assumed_by=iam.FederatedPrincipal(
                federated=self.provider.open_id_connect_provider_arn,
                conditions=trust_conditions(config.issuer_url, config.audience, config.subject_pattern),
                assume_role_action=ASSUME_ROLE_ACTION,
            ),
        )

        self.permissions_policy = iam.ManagedPolicy(
            self,
            "PermissionsPolicy",
            managed_policy_name=config.policy_name,
            description=f"Permissions for {config.role_name}",
            document=iam.PolicyDocument.from_json(config.permissions_document),
        )
        self.role.add_managed_policy(self.permissions_policy)

        CfnOutput(
            self,
            "RoleArn",
            value=self.role.role_arn,
            description="ARN for aws-actions/configure-aws-credentials role-to-assume",
        )

        ssm.StringParameter(
            self,
            "RoleArnParam",
            parameter_name="/gha-oidc/role_arn",
            string_value=self.role.role_arn,
        )
        ssm.StringParameter(
            self,
            "ProviderArnParam",
            parameter_name="/gha-oidc/provider_arn",
            string_value=self.provider.open_id_connect_provider_arn,
        )

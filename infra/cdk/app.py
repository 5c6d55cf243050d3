#!/usr/bin/env python3
import aws_cdk as cdk

from federation.config import load_config
from federation.thumbprint import fetch_thumbprint
from stacks.oidc_stack import OidcStack

# Context keys that override values from the -c config=<file> JSON file
OVERRIDE_KEYS = (
    "region",
    "issuer_url",
    "audience",
    "subject_pattern",
    "role_name",
    "policy_name",
    "permissions_file",
    "thumbprint",
)

app = cdk.App()

config = load_config(
    app.node.try_get_context("config"),
    overrides={k: app.node.try_get_context(k) for k in OVERRIDE_KEYS},
)
thumbprint = config.thumbprint or fetch_thumbprint(config.issuer_url)

env = cdk.Environment(account=cdk.Aws.ACCOUNT_ID, region=config.region)

oidc_stack = OidcStack(
    app,
    app.node.try_get_context("stack_name") or "GitHubActionsOidcStack",
    config=config,
    thumbprints=[thumbprint],
    env=env,
)

cdk.Tags.of(app).add("Project", "GitHubActionsOidc")
for key, value in config.tags.items():
    cdk.Tags.of(app).add(key, value)

app.synth()

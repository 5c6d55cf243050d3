import datetime
import json
from pathlib import Path

import pytest
from botocore.exceptions import ClientError
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from federation.config import FederationConfig

FIXTURES = Path(__file__).resolve().parent / "fixtures"
ACCOUNT_ID = "123456789012"

@pytest.fixture
def golden_trust_policy():
    return json.loads((FIXTURES / "trust_policy.json").read_text())

@pytest.fixture
def scoped_permissions():
    return {
        "Version": "2012-10-17",
        "Statement": [
            {"Effect": "Allow", "Action": ["s3:GetObject", "s3:PutObject"], "Resource": "arn:aws:s3:::widget-artifacts/*"}
        ],
    }

@pytest.fixture
def widget_config(scoped_permissions):
    return FederationConfig(
        issuer_url="https://token.actions.githubusercontent.com",
        audience="sts.amazonaws.com",
        subject_pattern="repo:acme/widget:*",
        role_name="git-actions-oidc",
        permissions_document=scoped_permissions,
        thumbprint="6938fd4d98bab03faadb97b34396831e3780aea1",
    )

@pytest.fixture
def self_signed_cert():
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "token.actions.githubusercontent.com")])
    now = datetime.datetime.now(datetime.timezone.utc)
    return (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(key, hashes.SHA256())
    )

@pytest.fixture
def self_signed_pem(self_signed_cert):
    return self_signed_cert.public_bytes(serialization.Encoding.PEM).decode("ascii")

class FakeIAM:
    """Records IAM calls in order; ``fail`` maps a method name to the ClientError it raises."""

    def __init__(self, fail=None):
        self.calls = []
        self.fail = fail or {}

    def _record(self, op, kwargs):
        self.calls.append((op, kwargs))
        if op in self.fail:
            raise self.fail[op]

    def create_open_id_connect_provider(self, **kwargs):
        self._record("create_open_id_connect_provider", kwargs)
        host = kwargs["Url"].split("://", 1)[-1]
        return {"OpenIDConnectProviderArn": f"arn:aws:iam::{ACCOUNT_ID}:oidc-provider/{host}"}

    def create_role(self, **kwargs):
        self._record("create_role", kwargs)
        return {"Role": {"RoleName": kwargs["RoleName"], "Arn": f"arn:aws:iam::{ACCOUNT_ID}:role/{kwargs['RoleName']}"}}

    def create_policy(self, **kwargs):
        self._record("create_policy", kwargs)
        return {"Policy": {"Arn": f"arn:aws:iam::{ACCOUNT_ID}:policy/{kwargs['PolicyName']}"}}

    def attach_role_policy(self, **kwargs):
        self._record("attach_role_policy", kwargs)
        return {}

    def ops(self):
        return [op for op, _ in self.calls]

    def call(self, op):
        return next(kw for name, kw in self.calls if name == op)

def client_error(code, message, operation):
    return ClientError({"Error": {"Code": code, "Message": message}}, operation)

@pytest.fixture
def fake_iam_factory():
    return FakeIAM

@pytest.fixture
def make_client_error():
    return client_error

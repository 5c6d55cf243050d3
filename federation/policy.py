from __future__ import annotations

import logging
import re
from typing import Any, Dict, Optional, Sequence, Union

from federation.errors import ConfigurationError

logger = logging.getLogger(__name__)

POLICY_VERSION = "2012-10-17"
ASSUME_ROLE_ACTION = "sts:AssumeRoleWithWebIdentity"

SubjectPattern = Union[str, Sequence[str]]

# repo:<owner>/<name>:... with no wildcard before the ref part
_PINNED_REPO = re.compile(r"^repo:[^/*?:]+/[^/*?:]+:.+$")

def issuer_host(url: str) -> str:
    """Issuer URL without its scheme prefix, e.g. token.actions.githubusercontent.com.

    Idempotent: a value that has no scheme comes back unchanged.
    """
    host = url.strip().split("://", 1)[-1].rstrip("/")
    if not host:
        raise ConfigurationError(f"Issuer URL has no host: {url!r}")
    return host

def github_subject(repository: str, ref: Optional[str] = None) -> str:
    repository = repository.strip().strip("/")
    if repository.count("/") != 1:
        raise ConfigurationError(f"Expected owner/name repository, got: {repository!r}")
    if ref:
        return f"repo:{repository}:ref:{ref}"
    return f"repo:{repository}:*"

def is_broad_subject(pattern: str) -> bool:
    return not _PINNED_REPO.match(pattern)

def validate_subject_pattern(subject_pattern: Any) -> SubjectPattern:
    """Return the pattern as a str or a tuple of str; anything else is a ConfigurationError."""
    if isinstance(subject_pattern, str):
        patterns = [subject_pattern]
    elif isinstance(subject_pattern, (list, tuple)):
        patterns = list(subject_pattern)
    else:
        raise ConfigurationError(f"subject_pattern must be a string or list of strings, got {type(subject_pattern).__name__}")
    if not patterns or any(not isinstance(p, str) or not p.strip() for p in patterns):
        raise ConfigurationError("subject_pattern must be a non-empty string or list of non-empty strings")
    return subject_pattern if isinstance(subject_pattern, str) else tuple(patterns)

def _subject_value(subject_pattern: SubjectPattern) -> Union[str, list]:
    subject_pattern = validate_subject_pattern(subject_pattern)
    patterns = [subject_pattern] if isinstance(subject_pattern, str) else list(subject_pattern)
    for p in patterns:
        if is_broad_subject(p):
            logger.warning("broad_subject_pattern subject_pattern=%s", p)
    return subject_pattern if isinstance(subject_pattern, str) else patterns

def trust_conditions(issuer_url: str, audience: str, subject_pattern: SubjectPattern) -> Dict[str, Dict[str, Any]]:
    host = issuer_host(issuer_url)
    if not audience:
        raise ConfigurationError("audience must not be empty")
    return {
        "StringEquals": {f"{host}:aud": audience},
        "StringLike": {f"{host}:sub": _subject_value(subject_pattern)},
    }

def trust_policy_document(
    issuer_url: str,
    provider_arn: str,
    audience: str,
    subject_pattern: SubjectPattern,
) -> Dict[str, Any]:
    """Trust policy letting tokens from the federated provider assume the role.

    The StringLike subject condition decides which repositories/branches may
    assume the role. Nothing else in the document narrows access.
    """
    if not provider_arn:
        raise ConfigurationError("provider_arn must not be empty")
    return {
        "Version": POLICY_VERSION,
        "Statement": [
            {
                "Effect": "Allow",
                "Action": ASSUME_ROLE_ACTION,
                "Principal": {"Federated": provider_arn},
                "Condition": trust_conditions(issuer_url, audience, subject_pattern),
            }
        ],
    }

def _as_list(value: Any) -> list:
    if value is None:
        return []
    return [value] if isinstance(value, str) else list(value)

def _check_statement(i: int, stmt: Any) -> None:
    if not isinstance(stmt, dict):
        raise ConfigurationError(f"Statement[{i}] must be an object")
    if stmt.get("Effect") not in ("Allow", "Deny"):
        raise ConfigurationError(f"Statement[{i}] Effect must be Allow or Deny")
    if "Action" not in stmt and "NotAction" not in stmt:
        raise ConfigurationError(f"Statement[{i}] needs Action or NotAction")
    if "Resource" not in stmt and "NotResource" not in stmt:
        raise ConfigurationError(f"Statement[{i}] needs Resource or NotResource")
    if stmt["Effect"] == "Allow" and "*" in _as_list(stmt.get("Action")) and "*" in _as_list(stmt.get("Resource")):
        logger.warning("unrestricted_permissions statement=%d", i)

def permissions_document(document: Any) -> Dict[str, Any]:
    """Validate a caller-supplied permissions document and fill in Version."""
    if not isinstance(document, dict):
        raise ConfigurationError("Permissions document must be a JSON object")
    statements = document.get("Statement")
    if isinstance(statements, dict):
        statements = [statements]
    if not statements or not isinstance(statements, list):
        raise ConfigurationError("Permissions document needs at least one Statement")
    for i, stmt in enumerate(statements):
        _check_statement(i, stmt)
    out = dict(document)
    out.setdefault("Version", POLICY_VERSION)
    out["Statement"] = statements
    return out

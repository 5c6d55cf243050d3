from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import urlparse

from federation.errors import ConfigurationError
from federation.policy import SubjectPattern, permissions_document, validate_subject_pattern

DEFAULT_REGION = "eu-west-2"
GITHUB_ISSUER_URL = "https://token.actions.githubusercontent.com"
DEFAULT_AUDIENCE = "sts.amazonaws.com"
DEFAULT_ROLE_NAME = "git-actions-oidc"
MAX_ROLE_NAME_LENGTH = 64
MAX_POLICY_NAME_LENGTH = 128

@dataclass(frozen=True)
class FederationConfig:
    subject_pattern: SubjectPattern
    permissions_document: Dict[str, Any]
    region: str = DEFAULT_REGION
    issuer_url: str = GITHUB_ISSUER_URL
    audience: str = DEFAULT_AUDIENCE
    role_name: str = DEFAULT_ROLE_NAME
    policy_name: str = ""
    description: str = "Assumed by GitHub Actions through OIDC"
    thumbprint: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        validate_issuer_url(self.issuer_url)
        for name in ("region", "audience", "role_name"):
            if not str(getattr(self, name) or "").strip():
                raise ConfigurationError(f"{name} must not be empty")
        if len(self.role_name) > MAX_ROLE_NAME_LENGTH:
            raise ConfigurationError(f"role_name longer than {MAX_ROLE_NAME_LENGTH} characters: {self.role_name}")
        if not self.policy_name:
            object.__setattr__(self, "policy_name", f"{self.role_name}-permissions")
        if len(self.policy_name) > MAX_POLICY_NAME_LENGTH:
            raise ConfigurationError(f"policy_name longer than {MAX_POLICY_NAME_LENGTH} characters")
        if self.subject_pattern is None or self.subject_pattern == "":
            raise ConfigurationError("subject_pattern is required (e.g. repo:<owner>/<name>:*)")
        object.__setattr__(self, "subject_pattern", validate_subject_pattern(self.subject_pattern))
        if self.thumbprint is not None:
            object.__setattr__(self, "thumbprint", validate_thumbprint(self.thumbprint))
        object.__setattr__(self, "permissions_document", permissions_document(self.permissions_document))

def validate_issuer_url(url: str) -> str:
    p = urlparse(url or "")
    if p.scheme != "https" or not p.hostname:
        raise ConfigurationError(f"Issuer URL must be https://<host>[/path]: {url!r}")
    return url

def validate_thumbprint(value: str) -> str:
    v = value.strip().lower().replace(":", "")
    if len(v) != 40 or any(c not in "0123456789abcdef" for c in v):
        raise ConfigurationError(f"Thumbprint must be 40 hex characters (SHA-1): {value!r}")
    return v

def load_permissions_file(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Missing permissions file: {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Permissions file is not valid JSON: {path}: {e}") from e

def from_mapping(values: Mapping[str, Any], base_dir: Optional[Path] = None) -> FederationConfig:
    """Build a config from plain keys; ``permissions_file`` is resolved against ``base_dir``."""
    known = {f.name for f in fields(FederationConfig)}
    values = {k: v for k, v in values.items() if v is not None}
    permissions_file = values.pop("permissions_file", None)
    unknown = sorted(set(values) - known)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {unknown}")
    if permissions_file is not None:
        p = Path(permissions_file)
        if base_dir is not None and not p.is_absolute():
            p = base_dir / p
        values["permissions_document"] = load_permissions_file(p)
    for required in ("subject_pattern", "permissions_document"):
        if required not in values:
            hint = "permissions_document or permissions_file" if required == "permissions_document" else required
            raise ConfigurationError(f"Missing required setting: {hint}")
    return FederationConfig(**values)

def load_config(path: Optional[Union[str, Path]] = None, overrides: Optional[Mapping[str, Any]] = None) -> FederationConfig:
    """Defaults < JSON config file < overrides (CLI flags or CDK context)."""
    values: Dict[str, Any] = {}
    base_dir = Path.cwd()
    if path:
        path = Path(path)
        if not path.exists():
            raise ConfigurationError(f"Missing config file: {path}")
        try:
            loaded = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise ConfigurationError(f"Config file is not valid JSON: {path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file must hold a JSON object: {path}")
        values.update(loaded)
        base_dir = path.resolve().parent
    for k, v in (overrides or {}).items():
        if v is None:
            continue
        if k == "permissions_file":
            values.pop("permissions_document", None)
            v = str(Path(v).resolve())
        elif k == "permissions_document":
            values.pop("permissions_file", None)
        values[k] = v
    return from_mapping(values, base_dir=base_dir)

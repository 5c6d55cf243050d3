from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO, Union

from federation.errors import ProvisioningError

GITHUB_OUTPUT_NAME = "role_arn"

def emit_role_arn(
    role_arn: str,
    *,
    stream: Optional[TextIO] = None,
    github_output: Optional[Union[str, Path]] = None,
) -> str:
    """Print the role ARN and, in GitHub Actions, append it to the $GITHUB_OUTPUT file."""
    if not role_arn:
        raise ProvisioningError("emit", "role ARN is empty")
    print(role_arn, file=stream or sys.stdout)
    if github_output:
        with open(github_output, "a", encoding="utf-8") as fh:
            fh.write(f"{GITHUB_OUTPUT_NAME}={role_arn}\n")
    return role_arn

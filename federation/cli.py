import argparse
import logging
import os
import sys
from typing import List, Optional

from federation.config import load_config
from federation.errors import FederationError
from federation.export import emit_role_arn
from federation.provision import run

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        description="Create the GitHub Actions OIDC provider, role and permissions policy with direct IAM calls."
    )
    ap.add_argument("--config", help="JSON config file")
    ap.add_argument("--region")
    ap.add_argument("--issuer-url")
    ap.add_argument("--audience")
    ap.add_argument("--subject-pattern", action="append", help="repeat for several patterns")
    ap.add_argument("--role-name")
    ap.add_argument("--policy-name")
    ap.add_argument("--permissions-file", help="JSON permissions policy document")
    ap.add_argument("--thumbprint", help="skip the certificate fetch and use this SHA-1 thumbprint")
    ap.add_argument(
        "--github-output",
        default=os.environ.get("GITHUB_OUTPUT"),
        help="file to append role_arn=<arn> to (defaults to $GITHUB_OUTPUT)",
    )
    ap.add_argument("--verbose", action="store_true")
    return ap

def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    subject = args.subject_pattern
    if subject and len(subject) == 1:
        subject = subject[0]

    try:
        config = load_config(
            args.config,
            overrides={
                "region": args.region,
                "issuer_url": args.issuer_url,
                "audience": args.audience,
                "subject_pattern": subject,
                "role_name": args.role_name,
                "policy_name": args.policy_name,
                "permissions_file": args.permissions_file,
                "thumbprint": args.thumbprint,
            },
        )
        result = run(config)
        emit_role_arn(result.role_arn, github_output=args.github_output)
    except FederationError as e:
        print(str(e), file=sys.stderr)
        raise SystemExit(1)

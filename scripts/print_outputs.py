import argparse
import sys
import boto3

PARAMS = {
    "ROLE_ARN": "/gha-oidc/role_arn",
    "PROVIDER_ARN": "/gha-oidc/provider_arn",
}

def main(argv=None) -> None:
    ap = argparse.ArgumentParser(description="Print an output the OIDC stack persisted to SSM.")
    ap.add_argument("--key", default="ROLE_ARN", choices=PARAMS.keys())
    ap.add_argument("--region")
    args = ap.parse_args(argv)

    ssm = boto3.client("ssm", region_name=args.region)
    try:
        print(ssm.get_parameter(Name=PARAMS[args.key])["Parameter"]["Value"])
    except ssm.exceptions.ParameterNotFound:
        print(f"Parameter not found: {PARAMS[args.key]}", file=sys.stderr)
        raise SystemExit(1)

if __name__ == "__main__":
    main()

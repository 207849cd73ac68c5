"""
Command-line interface for user-bucket.
"""

import argparse
import sys

from .core import (
    DEFAULT_PROFILE,
    ConfigurationError,
    get_aws_credentials_path,
    list_profiles,
    resolve_credentials,
    resolve_region,
)
from .provision import (
    ProvisionRequest,
    RemoteCallFailed,
    check_name_convention,
    provision,
    render_env,
)

USERNAME_PROMPT = "Enter the username for the new IAM user (lowercase, dashes are allowed, no underscores)"
BUCKET_PROMPT = "Enter the name for the new S3 bucket (lowercase, dashes are allowed, no underscores)"


def ask(prompt):
    """Prompt on stdin and return the stripped answer."""
    return input(f"{prompt}: ").strip()


def warn_on_name_convention(kind, name):
    """Print a warning if name breaks the lowercase-and-dashes convention."""
    if not check_name_convention(name):
        print(
            f"⚠ {kind} '{name}' does not follow the naming convention "
            f"(lowercase letters, digits and dashes, no underscores)",
            file=sys.stderr,
        )


def print_failure_report(error):
    """Report a failed remote call and the resources it left behind."""
    print(f"Error: Failed to {error.step}" if error.step else "Error: AWS call failed", file=sys.stderr)
    print(f"Details: {error}", file=sys.stderr)
    if error.completed_steps:
        print(file=sys.stderr)
        print("⚠ The following steps completed and were NOT rolled back:", file=sys.stderr)
        for step in error.completed_steps:
            print(f"  - {step}", file=sys.stderr)
        print("  Inspect and clean up these resources manually before retrying.", file=sys.stderr)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Create an IAM user and an S3 bucket the user can access, "
        "and print the user's credentials as .env lines",
        epilog="Examples:\n"
        "  create-user-and-bucket                         # Prompt for names, use the default profile\n"
        "  create-user-and-bucket --profile team-a        # Use credentials and region of profile team-a\n"
        "  create-user-and-bucket --username svc-ingest --bucket-name svc-ingest-data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--profile",
        default=DEFAULT_PROFILE,
        help="AWS profile whose credentials and region are used (default: 'default')",
    )
    parser.add_argument(
        "--username",
        default=None,
        help="Username for the new IAM user (prompted for if omitted)",
    )
    parser.add_argument(
        "--bucket-name",
        default=None,
        help="Name for the new S3 bucket (prompted for if omitted)",
    )
    parser.add_argument(
        "--profiles",
        action="store_true",
        help="List the profiles in ~/.aws/credentials and exit",
    )

    args = parser.parse_args(argv)

    if args.profiles:
        profiles = list_profiles()
        if not profiles:
            print(f"No profiles found in {get_aws_credentials_path()}", file=sys.stderr)
            return 1
        for name in profiles:
            print(name)
        return 0

    try:
        credentials = resolve_credentials(args.profile)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    region = resolve_region(args.profile)
    print(f"✓ Using profile '{args.profile}' in region {region}")

    try:
        username = args.username if args.username is not None else ask(USERNAME_PROMPT)
        bucket_name = args.bucket_name if args.bucket_name is not None else ask(BUCKET_PROMPT)
    except (KeyboardInterrupt, EOFError):
        print("\nAborted.", file=sys.stderr)
        return 130

    if not username or not bucket_name:
        print("Error: Username and bucket name must not be empty", file=sys.stderr)
        return 1

    warn_on_name_convention("Username", username)
    warn_on_name_convention("Bucket name", bucket_name)

    request = ProvisionRequest(username=username, bucket_name=bucket_name, profile_name=args.profile)

    try:
        result = provision(request, credentials, region, reporter=print)
    except RemoteCallFailed as e:
        print_failure_report(e)
        return 1

    print()
    print(f"✓ IAM user: {result.identity_arn}")
    print(f"✓ Bucket: {result.bucket_name} ({result.bucket_location})")
    print()
    print("Add the following to your .env file:")
    print()
    print(render_env(result))

    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
user-bucket: Create an IAM user with its own S3 bucket.

A Python CLI utility that provisions an IAM user, an S3 bucket, an access
key for the user and an inline policy restricting the user to that bucket,
then prints the credentials as .env lines.

Key features:
- Credentials and region resolved from ~/.aws profiles
- Single-bucket inline policy (get, put, list, delete)
- Reports which step failed and what was left behind
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .core import (
    DEFAULT_REGION,
    ConfigurationError,
    Credentials,
    CredentialsNotFoundError,
    IncompleteCredentialsError,
    MalformedCredentialsError,
    ProfileNotFoundError,
    get_aws_config_path,
    get_aws_credentials_path,
    list_profiles,
    resolve_credentials,
    resolve_region,
)
from .provision import (
    POLICY_NAME,
    AwsProvisioningApi,
    ProvisionRequest,
    ProvisionResult,
    RemoteCallFailed,
    generate_bucket_policy,
    provision,
    render_env,
)

__all__ = [
    # Configuration resolution
    "resolve_credentials",
    "resolve_region",
    "list_profiles",
    "get_aws_credentials_path",
    "get_aws_config_path",
    "Credentials",
    "DEFAULT_REGION",
    # Configuration errors
    "ConfigurationError",
    "CredentialsNotFoundError",
    "ProfileNotFoundError",
    "MalformedCredentialsError",
    "IncompleteCredentialsError",
    # Provisioning
    "provision",
    "generate_bucket_policy",
    "render_env",
    "AwsProvisioningApi",
    "ProvisionRequest",
    "ProvisionResult",
    "RemoteCallFailed",
    "POLICY_NAME",
]

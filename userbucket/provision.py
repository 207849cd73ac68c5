"""
Provision an IAM user, an S3 bucket, an access key and a bucket-scoped policy.
"""

import json
import re
from collections import namedtuple

import boto3
from botocore.exceptions import BotoCoreError, ClientError

POLICY_NAME = "S3BucketAccess"

# S3 rejects an explicit LocationConstraint for this region
US_EAST_1 = "us-east-1"

NAME_PATTERN = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

STEP_CONNECT = "connect to AWS"
STEP_CREATE_IDENTITY = "create IAM user"
STEP_CREATE_BUCKET = "create S3 bucket"
STEP_CREATE_ACCESS_KEY = "create access key"
STEP_PUT_POLICY = "attach bucket policy"

ProvisionRequest = namedtuple("ProvisionRequest", ["username", "bucket_name", "profile_name"])

ProvisionResult = namedtuple(
    "ProvisionResult",
    [
        "identity_arn",
        "bucket_location",
        "access_key_id",
        "secret_access_key",
        "region",
        "bucket_name",
        "policy_name",
        "policy_document",
    ],
)


class RemoteCallFailed(Exception):
    """An IAM or S3 call failed. Steps that already succeeded are not undone."""

    def __init__(self, message, error_code=None, step=None, completed_steps=()):
        super().__init__(message)
        self.error_code = error_code
        self.step = step
        self.completed_steps = list(completed_steps)


def _remote_error(action, e):
    if isinstance(e, ClientError):
        error = e.response.get("Error", {})
        code = error.get("Code")
        message = error.get("Message", str(e))
        return RemoteCallFailed(f"Failed to {action}: {code}: {message}", error_code=code)
    return RemoteCallFailed(f"Failed to {action}: {e}")


class AwsProvisioningApi:
    """IAM and S3 calls needed to provision a user and bucket."""

    def __init__(self, iam_client, s3_client):
        self.iam = iam_client
        self.s3 = s3_client

    @classmethod
    def from_credentials(cls, credentials, region):
        """
        Build clients from an explicit key pair and region.

        The session is created with explicit credentials so the ambient AWS
        credential chain (environment variables, instance roles) is bypassed.
        """
        try:
            session = boto3.Session(
                aws_access_key_id=credentials.access_key_id,
                aws_secret_access_key=credentials.secret_access_key,
                region_name=region,
            )
            return cls(session.client("iam"), session.client("s3"))
        except (ClientError, BotoCoreError) as e:
            raise _remote_error(f"create AWS clients for region '{region}'", e) from e

    def create_identity(self, username):
        """Create an IAM user and return its ARN."""
        try:
            response = self.iam.create_user(UserName=username)
        except (ClientError, BotoCoreError) as e:
            raise _remote_error(f"create IAM user '{username}'", e) from e
        return response["User"]["Arn"]

    def create_bucket(self, bucket_name, region):
        """Create an S3 bucket in region and return its location."""
        params = {"Bucket": bucket_name}
        if region != US_EAST_1:
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}
        try:
            response = self.s3.create_bucket(**params)
        except (ClientError, BotoCoreError) as e:
            raise _remote_error(f"create bucket '{bucket_name}' in {region}", e) from e
        return response.get("Location", f"/{bucket_name}")

    def create_access_key(self, username):
        """Create an access key for an IAM user, returns (access_key_id, secret_access_key)."""
        try:
            response = self.iam.create_access_key(UserName=username)
        except (ClientError, BotoCoreError) as e:
            raise _remote_error(f"create access key for user '{username}'", e) from e
        access_key = response["AccessKey"]
        return access_key["AccessKeyId"], access_key["SecretAccessKey"]

    def put_policy(self, username, policy_name, policy_document):
        """Attach an inline policy to an IAM user."""
        try:
            self.iam.put_user_policy(
                UserName=username,
                PolicyName=policy_name,
                PolicyDocument=json.dumps(policy_document),
            )
        except (ClientError, BotoCoreError) as e:
            raise _remote_error(f"attach policy '{policy_name}' to user '{username}'", e) from e
        return True


def generate_bucket_policy(bucket_name):
    """
    Generate an inline policy granting object access to a single bucket.

    Grants get/put/delete on the bucket's objects and list on the bucket
    itself. No other resources are referenced.

    Args:
        bucket_name: S3 bucket name

    Returns:
        dict: IAM policy document
    """
    return {
        "Version": "2012-10-17",
        "Statement": [
            {
                "Effect": "Allow",
                "Action": [
                    "s3:GetObject",
                    "s3:PutObject",
                    "s3:ListBucket",
                    "s3:DeleteObject",
                ],
                "Resource": [
                    f"arn:aws:s3:::{bucket_name}",
                    f"arn:aws:s3:::{bucket_name}/*",
                ],
            }
        ],
    }


def _no_report(message):
    pass


def check_name_convention(name):
    """Return True if name is lowercase letters, digits and dashes only."""
    return bool(NAME_PATTERN.match(name))


def provision(request, credentials, region, api=None, reporter=None):
    """
    Create the IAM user, bucket, access key and inline policy, in that order.

    Each step must succeed before the next one starts. Nothing is retried and
    nothing is rolled back: if a later step fails, resources from earlier
    steps are left in place.

    Args:
        request: ProvisionRequest with username and bucket name
        credentials: Credentials used to build the default API
        region: Region for the bucket and the clients
        api: Object providing create_identity/create_bucket/create_access_key/put_policy
            (defaults to AwsProvisioningApi built from credentials)
        reporter: Optional callable receiving progress messages

    Returns:
        ProvisionResult

    Raises:
        RemoteCallFailed: With step and completed_steps set
    """
    if api is None:
        try:
            api = AwsProvisioningApi.from_credentials(credentials, region)
        except RemoteCallFailed as e:
            e.step = STEP_CONNECT
            raise
    if reporter is None:
        reporter = _no_report

    completed = []

    def run(step, call, *args):
        try:
            value = call(*args)
        except RemoteCallFailed as e:
            e.step = step
            e.completed_steps = list(completed)
            raise
        completed.append(step)
        return value

    reporter(f"Creating IAM user '{request.username}'...")
    identity_arn = run(STEP_CREATE_IDENTITY, api.create_identity, request.username)
    reporter(f"✓ IAM user created: {identity_arn}")

    reporter(f"Creating S3 bucket '{request.bucket_name}' in {region}...")
    bucket_location = run(STEP_CREATE_BUCKET, api.create_bucket, request.bucket_name, region)
    reporter(f"✓ Bucket created: {bucket_location}")

    reporter(f"Creating access key for '{request.username}'...")
    access_key_id, secret_access_key = run(
        STEP_CREATE_ACCESS_KEY, api.create_access_key, request.username
    )
    reporter(f"✓ Access key created: {access_key_id[:10]}***")

    policy_document = generate_bucket_policy(request.bucket_name)
    reporter(f"Attaching policy '{POLICY_NAME}' to '{request.username}'...")
    run(STEP_PUT_POLICY, api.put_policy, request.username, POLICY_NAME, policy_document)
    reporter("✓ Policy attached")

    return ProvisionResult(
        identity_arn=identity_arn,
        bucket_location=bucket_location,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        region=region,
        bucket_name=request.bucket_name,
        policy_name=POLICY_NAME,
        policy_document=policy_document,
    )


def render_env(result):
    """Format a ProvisionResult as .env lines."""
    lines = [
        f"AWS_ACCESS_KEY_ID={result.access_key_id}",
        f"AWS_SECRET_ACCESS_KEY={result.secret_access_key}",
        f"AWS_DEFAULT_REGION={result.region}",
        f"AWS_BUCKET={result.bucket_name}",
        "AWS_USE_PATH_STYLE_ENDPOINT=false",
    ]
    return "\n".join(lines)

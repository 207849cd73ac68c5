"""
Profile, credential and region resolution for user-bucket.
"""

import configparser
import os
from collections import namedtuple

DEFAULT_PROFILE = "default"
DEFAULT_REGION = "ca-central-1"

Credentials = namedtuple("Credentials", ["access_key_id", "secret_access_key"])


class ConfigurationError(Exception):
    """Local AWS configuration problem, fixable by the operator."""


class CredentialsNotFoundError(ConfigurationError):
    pass


class ProfileNotFoundError(CredentialsNotFoundError):
    def __init__(self, message, profile_name, available_profiles):
        super().__init__(message)
        self.profile_name = profile_name
        self.available_profiles = available_profiles


class MalformedCredentialsError(ConfigurationError):
    pass


class IncompleteCredentialsError(ConfigurationError):
    pass


def get_aws_credentials_path(home=None):
    """Get the AWS credentials file path."""
    if home is None:
        home = os.path.expanduser("~")
    return os.path.join(home, ".aws", "credentials")


def get_aws_config_path(home=None):
    """Get the AWS config file path."""
    if home is None:
        home = os.path.expanduser("~")
    return os.path.join(home, ".aws", "config")


def get_profile_section_name(profile_name):
    """Get the config section name: "default" for the default profile, "profile NAME" for others."""
    if profile_name == DEFAULT_PROFILE:
        return DEFAULT_PROFILE
    return f"profile {profile_name}"


def read_aws_file(path):
    """
    Parse an AWS INI file (credentials or config).

    Args:
        path: Path to the file

    Returns:
        ConfigParser object, empty if the file does not exist

    Raises:
        configparser.Error: If the file is not valid INI data
        UnicodeDecodeError: If the file is not UTF-8
    """
    # AWS files use literal values, "%" included
    config = configparser.ConfigParser(interpolation=None)
    # Preserve case sensitivity for AWS keys
    config.optionxform = str
    if os.path.exists(path):
        config.read(path, encoding="utf-8")
    return config


def list_profiles(creds_file=None):
    """
    List profile names in the credentials file.

    Returns an empty list when the file is missing or cannot be parsed.
    """
    if creds_file is None:
        creds_file = get_aws_credentials_path()
    try:
        return read_aws_file(creds_file).sections()
    except (configparser.Error, UnicodeDecodeError, OSError):
        return []


def resolve_credentials(profile_name=DEFAULT_PROFILE, creds_file=None):
    """
    Resolve the access key pair for a profile from the credentials file.

    Args:
        profile_name: Profile section to read
        creds_file: Path to credentials file (defaults to ~/.aws/credentials)

    Returns:
        Credentials: access key id and secret access key

    Raises:
        CredentialsNotFoundError: If the credentials file does not exist
        MalformedCredentialsError: If the file cannot be parsed
        ProfileNotFoundError: If the profile section is absent
        IncompleteCredentialsError: If either key is missing from the profile
    """
    if creds_file is None:
        creds_file = get_aws_credentials_path()

    if not os.path.exists(creds_file):
        raise CredentialsNotFoundError(
            f"AWS credentials file not found at {creds_file}\n"
            f"  To fix: Run 'aws configure' to set up your credentials"
        )

    try:
        config = read_aws_file(creds_file)
    except (configparser.Error, UnicodeDecodeError) as e:
        raise MalformedCredentialsError(
            f"Could not parse AWS credentials file {creds_file}: {e}"
        ) from e

    if profile_name not in config.sections():
        available = config.sections()
        if available:
            hint = f"  Available profiles: {', '.join(available)}"
        else:
            hint = "  No profiles are defined. Run 'aws configure' to add one"
        raise ProfileNotFoundError(
            f"Profile '{profile_name}' not found in {creds_file}\n{hint}",
            profile_name,
            available,
        )

    profile = config[profile_name]
    access_key = profile.get("aws_access_key_id")
    secret_key = profile.get("aws_secret_access_key")

    missing = []
    if not access_key:
        missing.append("aws_access_key_id")
    if not secret_key:
        missing.append("aws_secret_access_key")
    if missing:
        raise IncompleteCredentialsError(
            f"Profile '{profile_name}' missing credentials: {', '.join(missing)}\n"
            f"  To fix: Run 'aws configure --profile {profile_name}'"
        )

    return Credentials(access_key, secret_key)


def resolve_region(profile_name=DEFAULT_PROFILE, config_file=None):
    """
    Resolve the region for a profile from the AWS config file.

    Falls back to the default profile's region, then to DEFAULT_REGION.
    Never raises.
    """
    if config_file is None:
        config_file = get_aws_config_path()

    if not os.path.exists(config_file):
        return DEFAULT_REGION

    try:
        config = read_aws_file(config_file)
        region = config.get(get_profile_section_name(profile_name), "region", fallback=None)
        if not region and profile_name != DEFAULT_PROFILE:
            region = config.get(DEFAULT_PROFILE, "region", fallback=None)
    except (configparser.Error, UnicodeDecodeError, OSError):
        return DEFAULT_REGION

    return region or DEFAULT_REGION

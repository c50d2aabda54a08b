import logging

import boto3
from botocore.exceptions import ClientError, NoCredentialsError

from instarepay_deploy.exceptions import CredentialsError, ResourceNotFoundError

logger = logging.getLogger(__name__)


def get_ec2_client(region):
    return boto3.client('ec2', region_name=region)


def get_sts_client(region):
    return boto3.client('sts', region_name=region)


def check_aws_setup(sts_client):
    """Make sure usable AWS credentials are configured and return the account id."""
    logger.info("🔍 Checking AWS credentials...")
    try:
        identity = sts_client.get_caller_identity()
    except (NoCredentialsError, ClientError) as e:
        raise CredentialsError(
            "AWS credentials not configured. Please run: aws configure. "
            "Or set environment variables: AWS_ACCESS_KEY_ID, "
            f"AWS_SECRET_ACCESS_KEY, AWS_DEFAULT_REGION ({e})"
        ) from e

    account_id = identity['Account']
    logger.info(f"✅ AWS credentials are configured (Account: {account_id})")
    return account_id


def get_default_vpc_id(ec2_client):
    response = ec2_client.describe_vpcs(
        Filters=[{'Name': 'is-default', 'Values': ['true']}]
    )
    if not response['Vpcs']:
        raise ResourceNotFoundError("No default VPC found")
    return response['Vpcs'][0]['VpcId']

import logging
from dataclasses import dataclass
from typing import Optional

from botocore.exceptions import ClientError

from instarepay_deploy.exceptions import InstanceNotFoundError, InstanceNotRunningError

logger = logging.getLogger(__name__)

_MISSING_INSTANCE_CODES = ('InvalidInstanceID.NotFound', 'InvalidInstanceID.Malformed')


@dataclass
class InstanceSummary:
    instance_id: str
    public_ip: Optional[str]
    state: str
    name: Optional[str] = None

    @classmethod
    def from_description(cls, instance):
        tags = {tag['Key']: tag['Value'] for tag in instance.get('Tags', [])}
        return cls(
            instance_id=instance['InstanceId'],
            public_ip=instance.get('PublicIpAddress'),
            state=instance['State']['Name'],
            name=tags.get('Name'),
        )


# --------------------- Lookup --------------------- #

def find_running_instance(ec2_client, name_tag):
    """Return the first running instance tagged ``Name=name_tag``, or None."""
    response = ec2_client.describe_instances(
        Filters=[
            {"Name": "tag:Name", "Values": [name_tag]},
            {"Name": "instance-state-name", "Values": ["running"]}
        ]
    )

    instances = [
        instance
        for reservation in response['Reservations']
        for instance in reservation['Instances']
    ]
    if not instances:
        return None
    return InstanceSummary.from_description(instances[0])


def require_running_instance(ec2_client, name_tag, environment=None):
    label = f"{environment} instance" if environment else "instance"
    logger.info(f"🔍 Getting {label} details...")

    instance = find_running_instance(ec2_client, name_tag)
    if instance is None or not instance.public_ip:
        raise InstanceNotFoundError(
            f"No {label} found. Please create an EC2 instance and tag it as '{name_tag}'"
        )

    logger.info(f"✅ {label.capitalize()} {instance.instance_id} is running at {instance.public_ip}")
    return instance


def describe_instance(ec2_client, instance_id):
    try:
        response = ec2_client.describe_instances(InstanceIds=[instance_id])
    except ClientError as e:
        if e.response['Error']['Code'] in _MISSING_INSTANCE_CODES:
            raise InstanceNotFoundError(f"EC2 instance {instance_id} not found") from e
        raise

    for reservation in response['Reservations']:
        for instance in reservation['Instances']:
            return InstanceSummary.from_description(instance)
    raise InstanceNotFoundError(f"EC2 instance {instance_id} not found")


def require_instance_running(ec2_client, instance_id):
    logger.info("🔍 Getting EC2 instance details...")
    instance = describe_instance(ec2_client, instance_id)
    if instance.state != 'running':
        raise InstanceNotRunningError(instance_id, instance.state)

    logger.info(f"✅ EC2 instance {instance_id} is running at {instance.public_ip}")
    return instance


# --------------------- Launch --------------------- #

def launch_instance(ec2_client, ami_id, instance_type, key_name, security_group_id, tags):
    logger.info("🚀 Launching EC2 instance...")
    response = ec2_client.run_instances(
        ImageId=ami_id,
        InstanceType=instance_type,
        KeyName=key_name,
        SecurityGroupIds=[security_group_id],
        MinCount=1,
        MaxCount=1,
        TagSpecifications=[{
            'ResourceType': 'instance',
            'Tags': [{'Key': key, 'Value': value} for key, value in tags.items()]
        }]
    )
    instance_id = response['Instances'][0]['InstanceId']
    logger.info(f"✅ EC2 instance launched (ID: {instance_id})")
    return instance_id


def wait_until_running(ec2_client, instance_id):
    logger.info("⏳ Waiting for instance to be running...")
    ec2_client.get_waiter('instance_running').wait(InstanceIds=[instance_id])
    return describe_instance(ec2_client, instance_id)

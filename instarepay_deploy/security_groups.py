import logging

logger = logging.getLogger(__name__)


def find_security_group(ec2_client, group_name, vpc_id):
    response = ec2_client.describe_security_groups(
        Filters=[
            {'Name': 'group-name', 'Values': [group_name]},
            {'Name': 'vpc-id', 'Values': [vpc_id]}
        ]
    )
    if response['SecurityGroups']:
        return response['SecurityGroups'][0]['GroupId']
    return None


def ensure_security_group(ec2_client, group_name, description, ports, vpc_id):
    """
    Return the id of ``group_name``, creating it with TCP ingress on ``ports``.

    An existing group is returned as is; its rules are left alone.
    """
    logger.info("🔍 Checking for existing security group...")
    group_id = find_security_group(ec2_client, group_name, vpc_id)
    if group_id:
        logger.info(f"✅ Security group '{group_name}' already exists (ID: {group_id})")
        return group_id

    logger.info(f"Creating security group '{group_name}'...")
    response = ec2_client.create_security_group(
        GroupName=group_name,
        Description=description,
        VpcId=vpc_id
    )
    group_id = response['GroupId']

    ec2_client.authorize_security_group_ingress(
        GroupId=group_id,
        IpPermissions=[
            {
                'IpProtocol': 'tcp',
                'FromPort': port,
                'ToPort': port,
                'IpRanges': [{'CidrIp': '0.0.0.0/0'}]
            }
            for port in ports
        ]
    )

    logger.info(f"✅ Security group created (ID: {group_id})")
    return group_id

from instarepay_deploy.aws_clients import get_default_vpc_id
from instarepay_deploy.security_groups import ensure_security_group, find_security_group


def test_creates_group_with_ingress_ports(ec2_client):
    vpc_id = get_default_vpc_id(ec2_client)

    group_id = ensure_security_group(
        ec2_client, "instarepay-sg", "Security group for InstaRepay application",
        (22, 80, 443, 3000, 3001), vpc_id,
    )

    group = ec2_client.describe_security_groups(GroupIds=[group_id])["SecurityGroups"][0]
    ports = sorted(permission["FromPort"] for permission in group["IpPermissions"])
    assert ports == [22, 80, 443, 3000, 3001]
    assert all(
        permission["IpRanges"][0]["CidrIp"] == "0.0.0.0/0"
        for permission in group["IpPermissions"]
    )


def test_existing_group_is_left_alone(ec2_client):
    vpc_id = get_default_vpc_id(ec2_client)
    first = ensure_security_group(ec2_client, "instarepay-backend-staging-sg", "backend", (22,), vpc_id)

    second = ensure_security_group(ec2_client, "instarepay-backend-staging-sg", "backend", (22, 3001), vpc_id)

    assert second == first
    group = ec2_client.describe_security_groups(GroupIds=[first])["SecurityGroups"][0]
    assert [permission["FromPort"] for permission in group["IpPermissions"]] == [22]


def test_find_missing_group(ec2_client):
    assert find_security_group(ec2_client, "missing-sg", get_default_vpc_id(ec2_client)) is None

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from instarepay_deploy.aws_clients import get_default_vpc_id
from instarepay_deploy.instances import (
    InstanceSummary,
    find_running_instance,
    launch_instance,
    wait_until_running,
)
from instarepay_deploy.key_pairs import ensure_key_pair, link_key_alias
from instarepay_deploy.security_groups import ensure_security_group
from instarepay_deploy.settings import APP_PROFILE, backend_profile

logger = logging.getLogger(__name__)


@dataclass
class ProvisionResult:
    instance: InstanceSummary
    already_existed: bool = False
    key_path: Optional[Path] = None
    key_alias: Optional[Path] = None
    security_group_id: Optional[str] = None
    next_steps: List[str] = field(default_factory=list)


def _stop_reminder(instance_id):
    return f"Remember to stop the instance when not in use: aws ec2 stop-instances --instance-ids {instance_id}"


def _provision(ec2_client, settings, profile, key_dir):
    key_path = ensure_key_pair(ec2_client, profile.key_name, key_dir)

    vpc_id = get_default_vpc_id(ec2_client)
    group_id = ensure_security_group(
        ec2_client,
        profile.security_group,
        profile.security_group_description,
        profile.ports,
        vpc_id,
    )

    instance_id = launch_instance(
        ec2_client,
        settings.ami_id,
        settings.instance_type,
        profile.key_name,
        group_id,
        profile.tags(),
    )
    instance = wait_until_running(ec2_client, instance_id)
    alias = link_key_alias(key_path, profile.key_alias)

    return ProvisionResult(
        instance=instance,
        key_path=key_path,
        key_alias=alias,
        security_group_id=group_id,
    )


def create_app_instance(ec2_client, settings, key_dir="."):
    """Launch the single full-stack instance (frontend and backend together)."""
    result = _provision(ec2_client, settings, APP_PROFILE, key_dir)

    key_name = result.key_alias.name if result.key_alias else APP_PROFILE.key_alias
    result.next_steps = [
        "Wait a few minutes for the instance to fully initialize",
        f"Test SSH connection: ssh -i {key_name} {settings.remote_user}@{result.instance.public_ip}",
        f"Deploy your app: instarepay-deploy deploy -i {result.instance.instance_id}",
        _stop_reminder(result.instance.instance_id),
    ]
    logger.info("🎉 EC2 Instance Ready!")
    return result


def create_backend_instance(ec2_client, settings, environment, key_dir="."):
    """Launch the backend API instance for ``environment`` unless one is running."""
    profile = backend_profile(environment)

    logger.info(f"🔍 Checking for existing {environment} backend instance...")
    existing = find_running_instance(ec2_client, profile.name_tag)
    if existing:
        logger.info(f"✅ {environment} backend instance already exists: {existing.instance_id}")
        return ProvisionResult(instance=existing, already_existed=True)

    result = _provision(ec2_client, settings, profile, key_dir)

    key_name = result.key_alias.name if result.key_alias else profile.key_alias
    result.next_steps = [
        "Wait a few minutes for the instance to fully initialize",
        f"Test SSH connection: ssh -i {key_name} {settings.remote_user}@{result.instance.public_ip}",
        "The CI/CD pipeline will automatically deploy to this instance",
        _stop_reminder(result.instance.instance_id),
    ]
    logger.info(f"🎉 Backend {environment} Instance Ready!")
    return result

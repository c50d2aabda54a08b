import logging
import subprocess
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from instarepay_deploy.aws_clients import check_aws_setup
from instarepay_deploy.bundle import build_bundle
from instarepay_deploy.exceptions import (
    CommitResolutionError,
    MissingKeyError,
    MissingRepositoryError,
)
from instarepay_deploy.instances import (
    InstanceSummary,
    require_instance_running,
    require_running_instance,
)
from instarepay_deploy.remote import RemoteHost
from instarepay_deploy.remote_scripts import (
    COMPOSE_FILE,
    backend_container_script,
    compose_deploy_script,
    full_stack_deploy_script,
    ssl_setup_script,
)
from instarepay_deploy.settings import (
    PRODUCTION,
    app_lookup_tag,
    backend_profile,
    validate_environment,
)

logger = logging.getLogger(__name__)

MAIN_REF = "refs/heads/main"


@dataclass
class DeploymentResult:
    instance: InstanceSummary
    urls: dict = field(default_factory=dict)
    next_steps: List[str] = field(default_factory=list)
    warning: Optional[str] = None


def require_key_file(key_path):
    key_path = Path(key_path)
    if not key_path.is_file():
        raise MissingKeyError(key_path)
    return key_path


# --------------------- Full Stack Bundle --------------------- #

def deploy_full_stack(ec2_client, sts_client, settings, instance_id, project_root,
                      key_path, user=None, setup_ssl=False, remote_factory=RemoteHost):
    """Ship the project tree to ``instance_id`` and run its ``deploy.sh`` there."""
    key_path = require_key_file(key_path)
    user = user or settings.remote_user

    check_aws_setup(sts_client)
    instance = require_instance_running(ec2_client, instance_id)

    with tempfile.TemporaryDirectory(prefix="instarepay-deploy-") as workdir:
        archive = build_bundle(project_root, workdir)

        with remote_factory(instance.public_ip, user, key_path, settings.ssh_connect_timeout) as host:
            host.put(archive, f"/tmp/{archive.name}")
            logger.info("✅ Files uploaded successfully")

            logger.info("🚀 Starting deployment on EC2...")
            host.run(full_stack_deploy_script(archive.name, settings.app_dir, user))
            logger.info("✅ Deployment completed successfully!")

            if setup_ssl:
                logger.info("🔒 Setting up SSL certificate...")
                host.run(ssl_setup_script())

    ip = instance.public_ip
    return DeploymentResult(
        instance=instance,
        urls={
            "Application URL": f"http://{ip}",
            "API URL": f"http://{ip}/api",
        },
        next_steps=[
            f"Configure your domain DNS to point to {ip}",
            f"Run SSL setup if needed: instarepay-deploy deploy -i {instance.instance_id} --ssl",
            f"Monitor logs: ssh -i {key_path} {user}@{ip} "
            f"'cd {settings.app_dir} && docker-compose -f {COMPOSE_FILE} logs -f'",
        ],
    )


# --------------------- Backend Container --------------------- #

def deploy_backend(ec2_client, settings, environment, key_path, image=None,
                   remote_factory=RemoteHost):
    """Replace the backend container on the ``environment`` backend host."""
    profile = backend_profile(environment)
    key_path = require_key_file(key_path)
    image = image or settings.backend_image

    placeholders = settings.placeholder_secrets()
    if placeholders:
        logger.warning(f"⚠️  Using placeholder values for: {', '.join(placeholders)}")

    instance = require_running_instance(ec2_client, profile.name_tag, f"backend {environment}")

    logger.info(f"🐳 Deploying backend with Docker image: {image}")
    script = backend_container_script(
        image,
        environment,
        settings.backend_secrets(),
        settings.backend_dir,
        settings.backend_port,
        settings.health_check_delay,
        settings.remote_user,
    )
    with remote_factory(instance.public_ip, settings.remote_user, key_path, settings.ssh_connect_timeout) as host:
        host.run(script)

    base_url = f"http://{instance.public_ip}:{settings.backend_port}"
    result = DeploymentResult(
        instance=instance,
        urls={"Backend API URL": base_url, "Health Check": f"{base_url}/health"},
    )
    if environment == PRODUCTION:
        result.warning = "Production backend deployment completed - please verify the API"
    return result


# --------------------- CI Compose Deployment --------------------- #

def current_commit(github_sha=None):
    try:
        completed = subprocess.run(
            ['git', 'rev-parse', '--short', 'HEAD'],
            capture_output=True, text=True, check=True,
        )
        return completed.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError) as e:
        if github_sha:
            return github_sha[:7]
        raise CommitResolutionError() from e


def resolve_ci_images(repository, ref, commit):
    tag = "latest" if ref == MAIN_REF else commit
    return (
        f"ghcr.io/{repository}/frontend:{tag}",
        f"ghcr.io/{repository}/backend:{tag}",
    )


def deploy_ci(ec2_client, settings, environment, key_path, commit=None,
              remote_factory=RemoteHost):
    """Roll the compose stack on the ``environment`` host to the images built by CI."""
    validate_environment(environment)
    key_path = require_key_file(key_path)
    repository = settings.github_repository
    if not repository:
        raise MissingRepositoryError()

    instance = require_running_instance(ec2_client, app_lookup_tag(environment), environment)

    logger.info("🐳 Deploying with container images...")
    if settings.github_ref != MAIN_REF and commit is None:
        commit = current_commit(settings.github_sha)
    frontend_image, backend_image = resolve_ci_images(repository, settings.github_ref, commit)

    script = compose_deploy_script(
        frontend_image,
        backend_image,
        settings.app_dir,
        settings.health_check_delay,
        settings.remote_user,
    )
    with remote_factory(instance.public_ip, settings.remote_user, key_path, settings.ssh_connect_timeout) as host:
        host.run(script)

    ip = instance.public_ip
    result = DeploymentResult(
        instance=instance,
        urls={"Application URL": f"http://{ip}", "API URL": f"http://{ip}/api"},
    )
    if environment == PRODUCTION:
        result.warning = "Production deployment completed - please verify the application"
    return result

import functools
import logging
from pathlib import Path

import click

from instarepay_deploy import __version__
from instarepay_deploy.aws_clients import get_ec2_client, get_sts_client
from instarepay_deploy.deploy import deploy_backend, deploy_ci, deploy_full_stack
from instarepay_deploy.exceptions import DeploymentError
from instarepay_deploy.instances import find_running_instance
from instarepay_deploy.provision import create_app_instance, create_backend_instance
from instarepay_deploy.settings import (
    STAGING,
    app_lookup_tag,
    backend_profile,
    get_settings,
)

environment_argument = click.argument(
    "environment", metavar="[staging|production]", default=STAGING, required=False
)


def configure_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Keep the SDK and SSH libraries quiet
    for name in ("boto3", "botocore", "paramiko", "scp", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)


def reports_errors(command):
    @functools.wraps(command)
    def wrapper(*args, **kwargs):
        try:
            return command(*args, **kwargs)
        except DeploymentError as e:
            raise click.ClickException(str(e)) from e
    return wrapper


def _region(ctx):
    return ctx.obj.get("region") or get_settings().aws_region


def _echo_instance(instance, title):
    click.secho(f"\n🎉 {title}", fg="green", bold=True)
    click.secho("=" * (len(title) + 3), fg="green")
    click.echo(f"Instance ID: {instance.instance_id}")
    click.echo(f"Public IP: {instance.public_ip}")


def _echo_next_steps(steps):
    if not steps:
        return
    click.secho("\n📋 Next Steps:", fg="blue")
    for number, step in enumerate(steps, start=1):
        click.echo(f"{number}. {step}")


def _echo_deployment(result, title):
    click.secho(f"\n✅ {title}", fg="green", bold=True)
    for label, url in result.urls.items():
        click.secho(f"🔗 {label}: {url}", fg="green")
    if result.warning:
        click.secho(f"🚨 {result.warning}", fg="yellow")
    _echo_next_steps(result.next_steps)


@click.group()
@click.version_option(__version__)
@click.option("--region", default=None, help="AWS region (default: AWS_DEFAULT_REGION or us-east-1)")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, region, verbose):
    """Provision EC2 hosts and deploy InstaRepay containers to them."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["region"] = region


# --------------------- Provisioning --------------------- #

@cli.command("create-instance")
@click.option("--key-dir", type=click.Path(file_okay=False, path_type=Path), default=Path("."),
              show_default=True, help="Where to save a newly created private key")
@click.pass_context
@reports_errors
def create_instance_command(ctx, key_dir):
    """Create the full-stack EC2 instance with its key pair and security group."""
    settings = get_settings()
    region = _region(ctx)
    result = create_app_instance(get_ec2_client(region), settings, key_dir)

    _echo_instance(result.instance, "EC2 Instance Ready!")
    click.echo(f"Region: {region}")
    click.echo(f"Key Pair: {result.key_path}")
    _echo_next_steps(result.next_steps)


@cli.command("create-backend-instance")
@environment_argument
@click.option("--key-dir", type=click.Path(file_okay=False, path_type=Path), default=Path("."),
              show_default=True, help="Where to save a newly created private key")
@click.pass_context
@reports_errors
def create_backend_instance_command(ctx, environment, key_dir):
    """Create a backend API EC2 instance for ENVIRONMENT (staging or production)."""
    settings = get_settings()
    result = create_backend_instance(get_ec2_client(_region(ctx)), settings, environment, key_dir)

    if result.already_existed:
        click.echo(result.instance.public_ip)
        return

    _echo_instance(result.instance, f"Backend {environment} Instance Ready!")
    click.echo(f"Environment: {environment}")
    click.echo(f"Key Pair: {result.key_path}")
    _echo_next_steps(result.next_steps)


# --------------------- Deployment --------------------- #

@cli.command("deploy")
@click.option("-i", "--instance-id", required=True, help="EC2 instance ID")
@click.option("-k", "--key-path", type=click.Path(path_type=Path), default=None,
              help="SSH key path (default: aws.pem)")
@click.option("-u", "--user", default=None, help="SSH username (default: ubuntu)")
@click.option("-r", "--region", "instance_region", default=None,
              help="AWS region of the EC2 instance (e.g. eu-north-1)")
@click.option("--project-root", type=click.Path(exists=True, file_okay=False, path_type=Path),
              default=Path("."), show_default=True, help="Project tree to ship")
@click.option("--ssl", "setup_ssl", is_flag=True, help="Setup SSL certificate after deployment")
@click.pass_context
@reports_errors
def deploy_command(ctx, instance_id, key_path, user, instance_region, project_root, setup_ssl):
    """Upload the project tree to an instance and run its deploy script."""
    settings = get_settings()
    region = instance_region or _region(ctx)
    key_path = key_path or Path(settings.ssh_key_path)

    click.secho("🚀 InstaRepay AWS EC2 Deployment", fg="green", bold=True)
    result = deploy_full_stack(
        get_ec2_client(region),
        get_sts_client(region),
        settings,
        instance_id,
        project_root,
        key_path,
        user=user,
        setup_ssl=setup_ssl,
    )
    _echo_deployment(result, "Deployment completed successfully!")


@cli.command("deploy-backend")
@environment_argument
@click.argument("image", required=False)
@click.option("-k", "--key-path", type=click.Path(path_type=Path), default=Path("aws.pem"),
              show_default=True, help="SSH key path")
@click.pass_context
@reports_errors
def deploy_backend_command(ctx, environment, image, key_path):
    """Restart the backend container on the ENVIRONMENT backend instance."""
    settings = get_settings()
    result = deploy_backend(get_ec2_client(_region(ctx)), settings, environment, key_path, image=image)
    _echo_deployment(result, f"Backend {environment} deployment completed successfully!")


@cli.command("deploy-ci")
@environment_argument
@click.option("-k", "--key-path", type=click.Path(path_type=Path), default=Path("aws.pem"),
              show_default=True, help="SSH key path")
@click.pass_context
@reports_errors
def deploy_ci_command(ctx, environment, key_path):
    """Deploy the CI-built frontend and backend images with docker-compose."""
    settings = get_settings()
    click.secho(f"🚀 InstaRepay CI/CD Deployment ({environment})", fg="blue", bold=True)
    result = deploy_ci(get_ec2_client(_region(ctx)), settings, environment, key_path)
    _echo_deployment(result, f"{environment} deployment completed successfully!")


@cli.command("status")
@environment_argument
@click.option("--backend", is_flag=True, help="Look up the backend instance instead of the app instance")
@click.pass_context
@reports_errors
def status_command(ctx, environment, backend):
    """Show the running instance for ENVIRONMENT."""
    name_tag = backend_profile(environment).name_tag if backend else app_lookup_tag(environment)
    instance = find_running_instance(get_ec2_client(_region(ctx)), name_tag)
    if instance is None:
        click.secho(f"No running instance tagged '{name_tag}'", fg="yellow")
        return
    click.echo(f"{name_tag}: {instance.instance_id} ({instance.state}) at {instance.public_ip}")


def main():
    cli(obj={})


if __name__ == "__main__":
    main()

import logging
import os
from pathlib import Path

from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


def key_pair_exists(ec2_client, key_name):
    try:
        response = ec2_client.describe_key_pairs(KeyNames=[key_name])
        return len(response['KeyPairs']) > 0
    except ClientError as e:
        if e.response['Error']['Code'] == 'InvalidKeyPair.NotFound':
            return False
        raise


def ensure_key_pair(ec2_client, key_name, key_dir):
    """
    Reuse the key pair ``key_name`` if AWS already has it, otherwise create it.

    A newly created private key is written to ``<key_dir>/<key_name>.pem`` with
    owner read-only permissions. AWS never hands out the private key of an
    existing pair again, so a missing local file is only reported.
    """
    key_path = Path(key_dir) / f"{key_name}.pem"

    logger.info("🔍 Checking for existing key pair...")
    if key_pair_exists(ec2_client, key_name):
        logger.info(f"✅ Key pair '{key_name}' already exists")
        if not key_path.exists():
            logger.warning(f"⚠️  Private key for '{key_name}' not found locally (expected at {key_path})")
        return key_path

    Path(key_dir).mkdir(parents=True, exist_ok=True)
    if key_path.exists():
        logger.warning(f"⚠️  Removing stale private key {key_path} (no matching key pair in AWS)")
        key_path.unlink()

    logger.info(f"Creating key pair '{key_name}'...")
    response = ec2_client.create_key_pair(KeyName=key_name)

    try:
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w') as f:
            f.write(response['KeyMaterial'])
        os.chmod(key_path, 0o400)
    except OSError:
        # Without the private key the pair is useless, drop it so the next run recreates it
        logger.error(f"❌ Failed to save private key, deleting key pair '{key_name}' from AWS")
        if key_path.exists():
            key_path.unlink()
        ec2_client.delete_key_pair(KeyName=key_name)
        raise

    logger.info(f"✅ Key pair created and saved as '{key_path}'")
    return key_path


def link_key_alias(key_path, alias):
    """Point ``alias`` (next to the key file) at the key, like ``ln -sf``."""
    key_path = Path(key_path)
    if not key_path.is_file():
        return None

    alias_path = key_path.parent / alias
    if alias_path.is_symlink() or alias_path.exists():
        alias_path.unlink()
    alias_path.symlink_to(key_path.name)

    logger.info(f"✅ Created symlink: {alias} -> {key_path.name}")
    return alias_path

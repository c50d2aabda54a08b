import logging
import socket

import paramiko
from scp import SCPClient, SCPException

from instarepay_deploy.exceptions import RemoteCommandError, RemoteConnectionError

logger = logging.getLogger(__name__)


class RemoteHost:
    """SSH session to an EC2 host, used for scp uploads and remote scripts."""

    def __init__(self, host, user, key_path, connect_timeout=60):
        self.host = host
        self.user = user
        self.key_path = str(key_path)
        self.connect_timeout = connect_timeout
        self._client = None

    def connect(self):
        logger.info(f"Connecting to instance {self.host}...")
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())
        try:
            key = paramiko.RSAKey.from_private_key_file(self.key_path)
            client.connect(
                hostname=self.host,
                username=self.user,
                pkey=key,
                timeout=self.connect_timeout,
            )
        except (paramiko.SSHException, socket.error) as e:
            client.close()
            raise RemoteConnectionError(f"Failed to connect to {self.user}@{self.host}: {e}") from e
        self._client = client
        return self

    def close(self):
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self):
        return self.connect()

    def __exit__(self, exc_type, exc_value, traceback):
        self.close()

    def put(self, local_path, remote_path):
        logger.info(f"📤 Uploading {local_path} to {self.host}:{remote_path}...")
        try:
            with SCPClient(self._client.get_transport()) as scp:
                scp.put(str(local_path), remote_path)
        except (SCPException, paramiko.SSHException, socket.error) as e:
            raise RemoteConnectionError(f"Failed to upload {local_path} to {self.host}:{remote_path}: {e}") from e

    def run(self, script):
        """Run ``script`` on the host and return its output (stderr merged in); non-zero exit raises."""
        stdin, stdout, _ = self._client.exec_command(script)
        stdout.channel.set_combine_stderr(True)
        stdin.close()

        output = []
        for line in stdout:
            line = line.rstrip("\n")
            output.append(line)
            logger.info(f"[{self.host}] {line}")

        exit_status = stdout.channel.recv_exit_status()  # Wait for the command to complete
        if exit_status != 0:
            raise RemoteCommandError(self.host, exit_status, "\n".join(output[-20:]))
        return "\n".join(output)

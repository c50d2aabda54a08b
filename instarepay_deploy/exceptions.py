class DeploymentError(Exception):
    """Base class for every failure the deploy commands report to the user."""


class CredentialsError(DeploymentError):
    pass


class InvalidEnvironmentError(DeploymentError):
    def __init__(self, environment):
        super().__init__(
            f"Invalid environment '{environment}'. Use 'staging' or 'production'"
        )
        self.environment = environment


class ResourceNotFoundError(DeploymentError):
    pass


class InstanceNotFoundError(ResourceNotFoundError):
    pass


class InstanceNotRunningError(DeploymentError):
    def __init__(self, instance_id, state):
        super().__init__(
            f"EC2 instance {instance_id} is not running (current state: {state})"
        )
        self.instance_id = instance_id
        self.state = state


class MissingKeyError(DeploymentError):
    def __init__(self, key_path):
        super().__init__(f"SSH key not found at {key_path}")
        self.key_path = key_path


class RemoteConnectionError(DeploymentError):
    pass


class RemoteCommandError(DeploymentError):
    def __init__(self, host, exit_status, stderr=""):
        message = f"Remote command on {host} exited with status {exit_status}"
        if stderr:
            message += f": {stderr.strip()[-500:]}"
        super().__init__(message)
        self.host = host
        self.exit_status = exit_status
        self.stderr = stderr


class CommitResolutionError(DeploymentError):
    def __init__(self):
        super().__init__(
            "Cannot determine commit: set GITHUB_SHA or run inside a git checkout"
        )


class MissingRepositoryError(DeploymentError):
    def __init__(self):
        super().__init__(
            "GITHUB_REPOSITORY is not set; it is needed to build the ghcr.io image names"
        )

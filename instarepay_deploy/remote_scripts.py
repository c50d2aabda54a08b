"""Shell programs executed on the EC2 hosts over SSH.

Every value interpolated into a script goes through ``shlex.quote``.
"""
from shlex import quote

BACKEND_CONTAINER = "instarepay-backend"
COMPOSE_FILE = "docker-compose.prod.yml"
COMPOSE_VERSION = "v2.24.0"


def _prepare_dir(path, user):
    return f"""sudo mkdir -p {quote(path)}
sudo chown {quote(user)}:{quote(user)} {quote(path)}
cd {quote(path)}"""


def full_stack_deploy_script(archive_name, app_dir, user):
    archive = quote(f"/tmp/{archive_name}")
    compose_url = (
        "https://github.com/docker/compose/releases/download/"
        f"{COMPOSE_VERSION}/docker-compose-$(uname -s)-$(uname -m)"
    )
    return f"""set -e
echo 'Updating system...'
sudo apt update && sudo apt upgrade -y

echo 'Installing prerequisites...'
sudo apt install -y curl wget git unzip

echo 'Installing Docker if not present...'
if ! command -v docker >/dev/null 2>&1; then
    curl -fsSL https://get.docker.com -o get-docker.sh
    sudo sh get-docker.sh
    sudo usermod -aG docker "$USER"
fi

echo 'Installing Docker Compose if not present...'
if ! command -v docker-compose >/dev/null 2>&1; then
    sudo curl -L "{compose_url}" -o /usr/local/bin/docker-compose
    sudo chmod +x /usr/local/bin/docker-compose
fi

echo 'Setting up application directory...'
{_prepare_dir(app_dir, user)}

echo 'Extracting deployment files...'
tar -xzf {archive} -C {quote(app_dir)} --strip-components=1

echo 'Making scripts executable...'
chmod +x deploy.sh update.sh rollback.sh

echo 'Checking environment files...'
if [ ! -f '.env.production' ]; then
    echo 'Warning: .env.production not found. Please ensure environment variables are set.'
fi

echo 'Starting deployment...'
./deploy.sh
"""


def ssl_setup_script():
    return """sudo apt install -y certbot python3-certbot-nginx
echo 'SSL setup requires domain name. Please run manually:'
echo 'sudo certbot --nginx -d your-domain.com'
"""


def backend_container_script(image, environment, secrets, backend_dir, port, health_delay, user):
    env_flags = [f"-e NODE_ENV={quote(environment)}"]
    env_flags += [f"-e {name}={quote(value)}" for name, value in secrets.items()]
    env_lines = "".join(f"  {flag} \\\n" for flag in env_flags)
    image = quote(image)

    return f"""set -e
echo 'Setting up backend deployment directory...'
{_prepare_dir(backend_dir, user)}

echo 'Stopping existing backend containers...'
docker stop {BACKEND_CONTAINER} 2>/dev/null || true
docker rm {BACKEND_CONTAINER} 2>/dev/null || true

echo 'Pulling latest backend image...'
docker pull {image}

echo 'Starting backend container...'
docker run -d \\
  --name {BACKEND_CONTAINER} \\
  --restart unless-stopped \\
  -p {int(port)}:{int(port)} \\
{env_lines}  {image}

echo 'Waiting for backend to be healthy...'
sleep {int(health_delay)}

echo 'Checking backend health...'
curl -f http://localhost:{int(port)}/health || echo 'Health check endpoint not available'

echo 'Backend deployment completed successfully!'
"""


def compose_deploy_script(frontend_image, backend_image, app_dir, health_delay, user):
    compose = f"docker-compose -f {COMPOSE_FILE}"
    rewrite_frontend = quote(f"s|image:.*frontend.*|image: {frontend_image}|g")
    rewrite_backend = quote(f"s|image:.*backend.*|image: {backend_image}|g")

    return f"""set -e
echo 'Setting up deployment directory...'
{_prepare_dir(app_dir, user)}

echo 'Pulling latest container images...'
docker pull {quote(frontend_image)}
docker pull {quote(backend_image)}

echo 'Stopping existing containers...'
{compose} down || true

echo 'Starting new deployment...'
sed -i {rewrite_frontend} {COMPOSE_FILE}
sed -i {rewrite_backend} {COMPOSE_FILE}

echo 'Starting services...'
{compose} up -d

echo 'Waiting for services to be healthy...'
sleep {int(health_delay)}

echo 'Checking service health...'
{compose} ps

echo 'Running database migrations if needed...'
{compose} exec -T backend npm run migrate:prod || true

echo 'Deployment completed successfully!'
"""

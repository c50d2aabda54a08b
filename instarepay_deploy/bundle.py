import fnmatch
import logging
import tarfile
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

BUNDLE_ROOT = "instarepay"

EXCLUDED_DIRS = (
    "InstaRepay-frontend/node_modules",
    "loan-management-backend/node_modules",
    "InstaRepay-frontend/.next",
)
EXCLUDED_PATTERNS = ("*/*.log",)


def bundle_name(now=None):
    now = now or datetime.now()
    return f"instarepay-deploy-{now:%Y%m%d-%H%M%S}.tar.gz"


def is_excluded(relative_path):
    relative_path = relative_path.replace("\\", "/")
    for excluded in EXCLUDED_DIRS:
        if relative_path == excluded or relative_path.startswith(excluded + "/"):
            return True
    return any(fnmatch.fnmatchcase(relative_path, pattern) and relative_path.count("/") == 1
               for pattern in EXCLUDED_PATTERNS)


def build_bundle(project_root, output_dir, now=None):
    """
    Pack ``project_root`` into a gzipped tarball inside ``output_dir``.

    Every entry sits under a single top-level directory so the archive can be
    unpacked on the host with ``--strip-components=1``.
    """
    project_root = Path(project_root).resolve()
    archive_path = Path(output_dir) / bundle_name(now)
    archive_resolved = archive_path.resolve()

    def _filter(tarinfo):
        relative = tarinfo.name[len(BUNDLE_ROOT):].lstrip("/")
        if relative and is_excluded(relative):
            return None
        if (project_root / relative).resolve() == archive_resolved:
            return None
        return tarinfo

    logger.info(f"📦 Creating deployment bundle {archive_path.name}...")
    with tarfile.open(archive_path, "w:gz") as tar:
        tar.add(project_root, arcname=BUNDLE_ROOT, filter=_filter)

    return archive_path

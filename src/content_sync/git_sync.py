"""Fetch a scope's content repository into a throwaway directory.

Every fetch is a fresh shallow clone; nothing is cached between syncs. The
caller owns the returned directory and must remove it (see
``sync_from_repository``).
"""

import logging
import os
import re
import shutil
import subprocess
import tempfile
from typing import Optional, Tuple
from urllib.parse import urlparse

from dotenv import load_dotenv

from .errors import GitSyncError, MissingScopeError
from .models import Scope, SyncSummary

logger = logging.getLogger(__name__)

# Git clone timeout in seconds
GIT_CLONE_TIMEOUT = 120

# Subdirectory of the repository holding content files
CONTENT_SUBDIR = "content"

# Supported hosts and the environment variable holding each one's token
PROVIDER_TOKENS = {
    "github.com": "GITHUB_TOKEN",
    "gitlab.com": "GITLAB_TOKEN",
}

# Username the token is sent as over https
PROVIDER_USERS = {
    "github.com": "x-access-token",
    "gitlab.com": "oauth2",
}

SSH_URL_PATTERN = re.compile(r"^git@(?P<host>[A-Za-z0-9.\-]+):(?P<path>[\w.\-]+/[\w.\-/]+?)(?:\.git)?/?$")
REPO_PATH_PATTERN = re.compile(r"^/?[\w.\-]+/[\w.\-/]+?(?:\.git)?/?$")


class GitSync:
    """Clones content repositories with ``git clone --depth 1``.

    Credentials come from ``GITHUB_TOKEN`` / ``GITLAB_TOKEN``, loaded from
    a .env file with python-dotenv. Tokens are never logged.

    Example:
        >>> path = GitSync().clone_to_temp(Scope("acct", "proj", "https://github.com/acme/site"))
        >>> try:
        ...     engine.sync_directory(scope, os.path.join(path, "content"))
        ... finally:
        ...     shutil.rmtree(path)
    """

    def __init__(self, timeout: int = GIT_CLONE_TIMEOUT):
        load_dotenv()
        self.timeout = timeout

    def clone_to_temp(self, scope: Optional[Scope]) -> str:
        """Clone ``scope.content_repo`` into a new temporary directory.

        Returns:
            Absolute path of the clone

        Raises:
            GitSyncError: With ``reason`` set to one of the GitSyncError constants
        """
        if scope is None or scope.project_id in (None, ""):
            raise GitSyncError(GitSyncError.PROJECT_NOT_FOUND, "scope has no project")

        repo_url = (scope.content_repo or "").strip()
        if not repo_url:
            raise GitSyncError(
                GitSyncError.NO_CONTENT_REPO,
                f"project {scope.project_id} has no content repository",
            )

        host, repo_path = parse_repo_url(repo_url)
        if host not in PROVIDER_TOKENS:
            raise GitSyncError(GitSyncError.UNSUPPORTED_PROVIDER, f"unsupported git host: {host}")

        token = os.getenv(PROVIDER_TOKENS[host])
        if not token:
            raise GitSyncError(
                GitSyncError.NOT_CONNECTED,
                f"{PROVIDER_TOKENS[host]} is not set; cannot access {host}",
            )

        clone_url = f"https://{PROVIDER_USERS[host]}:{token}@{host}/{repo_path}.git"
        temp_dir = tempfile.mkdtemp(prefix="content-sync-")
        logger.info(f"Cloning {host}/{repo_path} into {temp_dir}")

        try:
            self._run_clone(clone_url, temp_dir, token)
        except GitSyncError:
            shutil.rmtree(temp_dir, ignore_errors=True)
            raise

        return temp_dir

    def _run_clone(self, clone_url: str, target: str, token: str) -> None:
        try:
            result = subprocess.run(
                ["git", "clone", "--depth", "1", clone_url, target],
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except subprocess.TimeoutExpired:
            raise GitSyncError(
                GitSyncError.CLONE_FAILED,
                f"git clone timed out after {self.timeout} seconds",
            )
        except FileNotFoundError:
            raise GitSyncError(GitSyncError.CLONE_FAILED, "Git command not found. Please install git.")

        if result.returncode != 0:
            output = (result.stderr or "").replace(token, "***")
            raise GitSyncError(GitSyncError.CLONE_FAILED, "git clone failed", git_output=output)


def parse_repo_url(url: str) -> Tuple[str, str]:
    """Split a repository URL into ``(host, "owner/name")``.

    Accepts ``https://host/owner/name[.git]`` and ``git@host:owner/name[.git]``.

    Raises:
        GitSyncError: ``invalid_url`` if the URL matches neither form
    """
    ssh = SSH_URL_PATTERN.match(url)
    if ssh:
        return ssh.group("host").lower(), ssh.group("path")

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        raise GitSyncError(GitSyncError.INVALID_URL, f"not a repository URL: {url}")
    if not REPO_PATH_PATTERN.match(parsed.path):
        raise GitSyncError(GitSyncError.INVALID_URL, f"URL has no owner/name path: {url}")

    path = parsed.path.strip("/")
    if path.endswith(".git"):
        path = path[:-4]
    return parsed.hostname.lower(), path


def sync_from_repository(scope: Optional[Scope], engine, git_sync: Optional[GitSync] = None) -> SyncSummary:
    """Clone the scope's content repository, sync its ``content/`` directory, clean up.

    Raises:
        MissingScopeError: No scope given
        GitSyncError: The repository could not be fetched
        InvalidDirectoryError: The clone has no ``content/`` directory
        PersistenceError: The store rejected the batch
    """
    if scope is None:
        raise MissingScopeError("scope")

    git_sync = git_sync or GitSync()
    clone_dir = git_sync.clone_to_temp(scope)
    try:
        return engine.sync_directory(scope, os.path.join(clone_dir, CONTENT_SUBDIR))
    finally:
        shutil.rmtree(clone_dir, ignore_errors=True)
        logger.debug(f"Removed clone {clone_dir}")

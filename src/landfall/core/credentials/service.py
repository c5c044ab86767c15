"""
Credential lookup through ``git credential fill``.

The request is written to stdin as ``key=value`` lines terminated by a blank
line, and the helper answers with ``key=value`` lines on stdout. The output
holds the password, so it is never logged and never included in an error.
"""

from __future__ import annotations

import logging
import os
import re
import subprocess
from datetime import timedelta
from pathlib import Path
from urllib.parse import urlsplit

from pydantic import SecretStr

from landfall.core.credentials.models import UserPassword
from landfall.core.errors import SyncError

logger = logging.getLogger(__name__)

_NEW_LINE = re.compile(r"\r\n|\n|\r")

PROMPT_DISABLED_MARKER = "could not read"


def build_request(url: str) -> str:
    """
    Build the ``git credential fill`` request for ``url``.

    Raises:
        SyncError: VALIDATION if the URL cannot be parsed or has no protocol
    """
    try:
        parts = urlsplit(url)
        host = parts.hostname or ""
        if parts.port is not None:
            host = f"{host}:{parts.port}"
    except ValueError as e:
        raise SyncError.validation(f"Cannot get credentials for {url}") from e

    if not parts.scheme:
        raise SyncError.validation(f"Cannot find the protocol for {url}")

    request = f"protocol={parts.scheme}\nhost={host}\n"
    path = parts.path.lstrip("/")
    if path:
        request += f"path={path}\n"
    return request + "\n"


def parse_response(output: str) -> dict[str, str]:
    """Parse ``key=value`` lines, skipping empty lines."""
    values: dict[str, str] = {}
    for line in _NEW_LINE.split(output):
        if not line:
            continue
        key, sep, value = line.partition("=")
        if sep:
            values[key] = value
    return values


class GitCredential:
    """
    Runs ``git credential fill`` for repository URLs.

    Example:
        >>> credential = GitCredential(timeout=timedelta(seconds=30))
        >>> creds = credential.fill(Path.cwd(), "https://example.com/repo.git")
        >>> creds.username
        'jane'
    """

    def __init__(
        self,
        git_binary: str = "git",
        timeout: timedelta = timedelta(minutes=1),
        env: dict[str, str] | None = None,
    ) -> None:
        self.git_binary = git_binary
        self.timeout = timeout
        self.env = dict(os.environ) if env is None else dict(env)

    def fill(self, cwd: Path, url: str) -> UserPassword:
        """
        Look up the username and password for ``url``.

        Args:
            cwd: Directory to run in; local git config may define helpers
            url: Repository URL, including its protocol

        Returns:
            The credentials returned by the configured helpers

        Raises:
            SyncError: VALIDATION if the URL has no protocol or interactive
                prompting would be needed; EXECUTION if the helper fails, times
                out, or returns no username/password
        """
        request = build_request(url)

        # Keep git from prompting on the terminal instead of failing
        env = {**self.env, "GIT_ASKPASS": "", "GIT_TERMINAL_PROMPT": "0"}
        cmd = [self.git_binary, "credential", "fill"]
        logger.debug("Requesting credentials for %s", url)

        try:
            result = subprocess.run(
                cmd,
                cwd=cwd,
                input=request,
                capture_output=True,
                text=True,
                timeout=self.timeout.total_seconds(),
                env=env,
            )
        except subprocess.TimeoutExpired as e:
            raise SyncError.execution(
                f"Error getting credentials: timed out after {self.timeout.total_seconds():g}s"
            ) from e
        except OSError as e:
            raise SyncError.execution(f"Error getting credentials: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr or ""
            if PROMPT_DISABLED_MARKER in stderr:
                raise SyncError.validation(
                    "Interactive prompting of passwords for git is disabled,"
                    " use git credential store before calling landfall."
                )
            raise SyncError.execution(f"Error getting credentials:\n{stderr}")

        values = parse_response(result.stdout or "")
        if "username" not in values:
            raise SyncError.execution(f"git credentials for {url} didn't return a username")
        if "password" not in values:
            raise SyncError.execution(f"git credentials for {url} didn't return a password")

        return UserPassword(username=values["username"], password=SecretStr(values["password"]))

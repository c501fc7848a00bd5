"""External command invocation (``npm`` and ``git``).

depgauge never edits ``node_modules`` itself: installing, testing and
checking for uncommitted changes are delegated to the real tools. Every
call runs in the project directory with a hard timeout, and its outcome
is returned as a :class:`CommandResult` instead of raising, so that one
failing package never aborts a batch.
"""

from __future__ import annotations

import time
import shutil
import asyncio
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from depgauge.utils.logger import get_logger
from depgauge.constants import (
    GIT_TIMEOUT,
    LOCKFILE_FILE,
    MANIFEST_FILE,
    NPM_INSTALL_TIMEOUT,
    NPM_TEST_TIMEOUT,
)

logger = get_logger("package_manager")


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    command: Sequence[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed: float = 0.0
    timed_out: bool = False

    @property
    def success(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    @property
    def output(self) -> str:
        """Stdout followed by stderr, as a user would see them."""
        if self.stderr:
            return f"{self.stdout}\n{self.stderr}" if self.stdout else self.stderr
        return self.stdout

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


async def run_command(
    command: Sequence[str],
    *,
    cwd: Union[str, Path],
    timeout: float,
) -> CommandResult:
    """Run ``command`` in ``cwd`` and capture its output.

    A timeout kills the process and yields a failed result; a missing
    executable yields a failed result with returncode ``127``.
    """
    start = time.monotonic()
    logger.debug("Running %s in %s", " ".join(command), cwd)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd),
        )
    except OSError as exc:
        logger.warning("Cannot start %s: %s", command[0], exc)
        return CommandResult(
            command=tuple(command),
            returncode=127,
            stderr=f"Cannot start {command[0]}: {exc}",
            elapsed=time.monotonic() - start,
        )

    try:
        stdout_data, stderr_data = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(command))
        return CommandResult(
            command=tuple(command),
            returncode=-1,
            stderr=f"Command timed out after {timeout}s",
            elapsed=time.monotonic() - start,
            timed_out=True,
        )

    result = CommandResult(
        command=tuple(command),
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout_data.decode("utf-8", errors="replace"),
        stderr=stderr_data.decode("utf-8", errors="replace"),
        elapsed=time.monotonic() - start,
    )
    logger.debug(
        "%s exited with %d after %.1fs",
        result.command_line,
        result.returncode,
        result.elapsed,
    )
    return result


class NpmRunner:
    """Run ``npm`` and ``git`` for one project directory.

    Args:
        project_dir: Directory holding ``package.json``.
        npm: npm executable; resolved on ``PATH`` when omitted.
        git: git executable; resolved on ``PATH`` when omitted.
    """

    def __init__(
        self,
        project_dir: Union[str, Path],
        *,
        npm: Optional[str] = None,
        git: Optional[str] = None,
    ) -> None:
        self.project_dir = Path(project_dir)
        self.npm = npm or shutil.which("npm") or "npm"
        self.git = git or shutil.which("git") or "git"

    async def install_package(
        self,
        name: str,
        version: str,
        *,
        timeout: float = NPM_INSTALL_TIMEOUT,
    ) -> CommandResult:
        """``npm install name@version``."""
        return await run_command(
            [self.npm, "install", f"{name}@{version}"],
            cwd=self.project_dir,
            timeout=timeout,
        )

    async def install_all(self, *, timeout: float = NPM_INSTALL_TIMEOUT) -> CommandResult:
        """``npm install`` with no arguments."""
        return await run_command([self.npm, "install"], cwd=self.project_dir, timeout=timeout)

    async def run_tests(self, *, timeout: float = NPM_TEST_TIMEOUT) -> CommandResult:
        """``npm test``."""
        return await run_command([self.npm, "test"], cwd=self.project_dir, timeout=timeout)

    async def has_uncommitted_changes(self, *, timeout: float = GIT_TIMEOUT) -> bool:
        """Whether git reports changes to the manifest or lockfile.

        Projects outside a git work tree, or machines without git,
        report no changes.
        """
        if not (self.project_dir / ".git").exists():
            return False

        result = await run_command(
            [self.git, "status", "--porcelain", MANIFEST_FILE, LOCKFILE_FILE],
            cwd=self.project_dir,
            timeout=timeout,
        )
        if not result.success:
            logger.debug("git status failed: %s", result.output.strip())
            return False
        return bool(result.stdout.strip())

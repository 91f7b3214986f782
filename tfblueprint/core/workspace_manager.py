"""
Terraform workspace management.

A generated module keeps one state per environment by running each
environment in a workspace of the same name. Workspace commands are
short, so they run synchronously with a small timeout.
"""

import logging
import subprocess
from dataclasses import dataclass
from typing import Dict, List, Tuple

from ..security.sanitizer import InputSanitizer, SecurityError
from ..standards.catalog import ENVIRONMENTS
from ..utils import subprocess_creation_flags

logger = logging.getLogger(__name__)

DEFAULT_WORKSPACE = "default"

# action -> past tense used in log messages
_ACTIONS = {"select": "Selected", "new": "Created", "delete": "Deleted"}


@dataclass
class WorkspaceInfo:
    """A workspace as reported by ``terraform workspace list``."""
    name: str
    is_current: bool


def parse_workspace_list(text: str) -> List[WorkspaceInfo]:
    """
    Parse ``terraform workspace list`` output.

    The current workspace is prefixed with ``*``.
    """
    workspaces = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry:
            continue
        current = entry.startswith("*")
        workspaces.append(WorkspaceInfo(name=entry.lstrip("* ").strip(), is_current=current))
    return workspaces


class WorkspaceManager:
    """
    Workspaces of one module directory.

    Example:
        >>> manager = WorkspaceManager("infrastructure/aws-vm-environment")
        >>> manager.ensure_workspace("staging")
        True
    """

    def __init__(self, project_path: str, terraform_binary: str = "terraform", timeout: int = 15):
        self.project_path = InputSanitizer.sanitize_path(project_path)
        self.terraform_binary = terraform_binary
        self.timeout = timeout

    def _run(self, *args: str) -> Tuple[int, str, str]:
        """
        Run ``terraform workspace <args>`` in the module directory.

        Returns:
            (exit_code, stdout, stderr); exit_code is -1 when terraform
            could not be run or timed out
        """
        cmd = [self.terraform_binary, f"-chdir={self.project_path}", "workspace", *args]
        unsafe = [arg for arg in cmd if not InputSanitizer.is_safe_command_arg(arg)]
        if unsafe:
            raise SecurityError(f"Unsafe command argument: {unsafe[0]}")

        logger.debug(f"Running: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                shell=False,
                creationflags=subprocess_creation_flags(),
            )
        except subprocess.TimeoutExpired:
            return -1, "", f"terraform workspace {args[0]} timed out after {self.timeout}s"
        except OSError as e:
            return -1, "", str(e)
        return proc.returncode, proc.stdout, proc.stderr

    def _change(self, action: str, name: str, *flags: str) -> bool:
        InputSanitizer.sanitize_workspace_name(name)
        code, _, stderr = self._run(action, *flags, name)
        if code != 0:
            logger.error(f"terraform workspace {action} {name} failed: {stderr.strip()}")
            return False
        logger.info(f"{_ACTIONS[action]} workspace {name} in {self.project_path}")
        return True

    def get_current_workspace(self) -> str:
        """Name of the selected workspace, ``default`` if it can't be read."""
        code, stdout, stderr = self._run("show")
        if code != 0 or not stdout.strip():
            logger.error(f"Could not read the current workspace: {stderr.strip()}")
            return DEFAULT_WORKSPACE
        return stdout.strip()

    def list_workspaces(self) -> List[WorkspaceInfo]:
        """
        List the workspaces of the module.

        Falls back to a single current ``default`` workspace when the list
        can't be read (e.g. before ``terraform init``).
        """
        code, stdout, stderr = self._run("list")
        workspaces = parse_workspace_list(stdout) if code == 0 else []
        if code != 0:
            logger.error(f"Could not list workspaces: {stderr.strip()}")
        return workspaces or [WorkspaceInfo(name=DEFAULT_WORKSPACE, is_current=True)]

    def environment_workspaces(self) -> Dict[str, bool]:
        """Map each standard environment to whether its workspace exists."""
        names = {ws.name for ws in self.list_workspaces()}
        return {env: env in names for env in ENVIRONMENTS}

    def switch_workspace(self, name: str) -> bool:
        """Select an existing workspace."""
        return self._change("select", name)

    def create_workspace(self, name: str) -> bool:
        """Create a workspace; terraform selects it afterwards."""
        return self._change("new", name)

    def delete_workspace(self, name: str, force: bool = False) -> bool:
        """
        Delete a workspace.

        Args:
            name: Workspace to delete, never ``default``
            force: Delete even if its state still tracks resources

        Returns:
            True if terraform deleted it
        """
        if name == DEFAULT_WORKSPACE:
            logger.error("The default workspace can't be deleted")
            return False
        return self._change("delete", name, *(["-force"] if force else []))

    def ensure_workspace(self, name: str) -> bool:
        """
        Make ``name`` the selected workspace, creating it when missing.

        Returns:
            True if the workspace is selected afterwards
        """
        InputSanitizer.sanitize_workspace_name(name)
        for ws in self.list_workspaces():
            if ws.name == name:
                return True if ws.is_current else self.switch_workspace(name)
        return self.create_workspace(name)

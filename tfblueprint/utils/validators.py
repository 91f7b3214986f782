"""
Environment checks used by ``tfblueprint doctor``.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

# Files every generated environment module has
MODULE_FILES = ("main.tf", "variables.tf", "outputs.tf")


def validate_terraform_installed(terraform_binary: str = "terraform") -> Tuple[bool, Optional[str]]:
    """
    Check that the terraform binary can be run.

    Returns:
        (installed, version line such as "Terraform v1.7.5"); the version
        is None when terraform is missing or ``terraform version`` fails
    """
    if shutil.which(terraform_binary) is None:
        logger.debug(f"{terraform_binary} not found on PATH")
        return False, None

    from . import subprocess_creation_flags
    try:
        proc = subprocess.run(
            [terraform_binary, "version"],
            capture_output=True,
            text=True,
            timeout=5,
            creationflags=subprocess_creation_flags(),
        )
    except (subprocess.TimeoutExpired, OSError) as e:
        logger.debug(f"{terraform_binary} version failed: {e}")
        return False, None

    if proc.returncode != 0:
        return False, None
    lines = proc.stdout.strip().splitlines()
    return True, lines[0] if lines else ""


def validate_module_dir(module_path: str) -> Tuple[bool, List[str]]:
    """
    Check that ``module_path`` holds an environment module.

    Returns:
        (complete, names of the missing MODULE_FILES)
    """
    path = Path(module_path)
    missing = [name for name in MODULE_FILES if not (path / name).is_file()]
    return not missing, missing

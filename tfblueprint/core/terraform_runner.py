"""
Runs terraform against a module directory.

Every command is built as an argument list (never a shell string), runs
with ``-chdir=<module>`` and ``-input=false`` where terraform supports it,
and has its output streamed line by line through an OutputRedactor before
it reaches the caller.
"""

import json
import logging
import subprocess
import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..security.redaction import REDACTED, OutputRedactor
from ..security.sanitizer import InputSanitizer, SecurityError
from ..utils import subprocess_creation_flags

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 1800

LineCallback = Callable[[str], None]


@dataclass
class CommandResult:
    """Outcome of one terraform command."""
    exit_code: int
    stdout: str
    stderr: str
    success: bool
    command: str  # terraform subcommand, e.g. "plan"


class TerraformRunner:
    """
    Terraform commands for one environment module.

    Example:
        >>> runner = TerraformRunner("infrastructure/aws-vm-environment")
        >>> runner.plan(var_file="environments/prod.tfvars", out_file="prod.tfplan").success
        True
    """

    def __init__(
        self,
        project_path: str,
        terraform_binary: str = "terraform",
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.project_path = InputSanitizer.sanitize_path(project_path)
        self.terraform_binary = terraform_binary
        self._timeout = timeout
        self._redactor = OutputRedactor()
        self._process: Optional[subprocess.Popen] = None

    def set_redactor(self, redactor: OutputRedactor):
        self._redactor = redactor

    def cancel(self):
        """Terminate the running terraform process, if any."""
        process = self._process
        if process is None:
            return
        try:
            process.terminate()
        except OSError:
            pass

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def init(
        self,
        backend_config: Optional[Dict[str, str]] = None,
        upgrade: bool = False,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        """
        Run ``terraform init``.

        Args:
            backend_config: ``-backend-config=key=value`` pairs for the state backend
            upgrade: Upgrade providers within their version constraints
        """
        cmd = self._build_base_command("init", "-input=false", "-no-color")
        if upgrade:
            cmd.append("-upgrade")
        for key, value in (backend_config or {}).items():
            InputSanitizer.sanitize_variable_name(key)
            cmd.append(self._checked(
                f"-backend-config={key}={InputSanitizer.sanitize_variable_value(value)}",
                f"backend-config {key}",
            ))
        return self._execute(cmd, "init", output_callback)

    def validate(self, output_callback: Optional[LineCallback] = None) -> CommandResult:
        return self._execute(self._build_base_command("validate", "-no-color"), "validate", output_callback)

    def plan(
        self,
        var_file: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        var_types: Optional[Dict[str, str]] = None,
        out_file: Optional[str] = None,
        destroy: bool = False,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        """
        Run ``terraform plan``.

        Args:
            var_file: Environment .tfvars file
            variables: Extra ``-var`` values
            var_types: Terraform type per variable, used to render values
            out_file: Save the plan here for a later apply
            destroy: Plan the destruction of everything instead
        """
        cmd = self._build_base_command("plan", "-input=false", "-no-color")
        if destroy:
            cmd.append("-destroy")
        cmd.extend(self._variable_args(var_file, variables, var_types))
        if out_file:
            cmd.append(f"-out={InputSanitizer.sanitize_plan_path(out_file)}")
        return self._execute(cmd, "plan", output_callback)

    def apply(
        self,
        plan_file: Optional[str] = None,
        var_file: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        var_types: Optional[Dict[str, str]] = None,
        auto_approve: bool = False,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        """
        Run ``terraform apply``, either from a saved plan or from variables.

        A saved plan is applied without a prompt, as terraform does.

        Raises:
            ValueError: If plan_file is combined with var_file or variables
        """
        if plan_file and (var_file or variables):
            raise ValueError("A saved plan can't be combined with variable arguments")

        cmd = self._build_base_command("apply", "-input=false", "-no-color")
        if auto_approve or plan_file:
            cmd.append("-auto-approve")
        if plan_file:
            cmd.append(InputSanitizer.sanitize_plan_path(plan_file))
        else:
            cmd.extend(self._variable_args(var_file, variables, var_types))
        return self._execute(cmd, "apply", output_callback)

    def destroy(
        self,
        var_file: Optional[str] = None,
        variables: Optional[Dict[str, Any]] = None,
        var_types: Optional[Dict[str, str]] = None,
        auto_approve: bool = False,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        cmd = self._build_base_command("destroy", "-input=false", "-no-color")
        if auto_approve:
            cmd.append("-auto-approve")
        cmd.extend(self._variable_args(var_file, variables, var_types))
        return self._execute(cmd, "destroy", output_callback)

    def output(
        self,
        name: Optional[str] = None,
        as_json: bool = True,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        cmd = self._build_base_command("output", "-no-color")
        if as_json:
            cmd.append("-json")
        if name:
            cmd.append(InputSanitizer.sanitize_variable_name(name))
        return self._execute(cmd, "output", output_callback)

    def output_values(self, show_sensitive: bool = False) -> Dict[str, Any]:
        """
        All outputs of the current state, sensitive ones masked.

        Raises:
            RuntimeError: If terraform output fails or prints invalid JSON
        """
        result = self.output(as_json=True)
        if not result.success:
            raise RuntimeError(f"terraform output failed: {result.stderr}")
        return parse_output_json(result.stdout, show_sensitive)

    # ------------------------------------------------------------------
    # Argument building
    # ------------------------------------------------------------------

    @staticmethod
    def _checked(arg: str, what: str) -> str:
        if not InputSanitizer.is_safe_command_arg(arg):
            raise SecurityError(f"Unsafe {what} argument")
        return arg

    def _build_base_command(self, operation: str, *flags: str) -> List[str]:
        """``[binary, -chdir=<module>, operation, *flags]``"""
        chdir = self._checked(f"-chdir={self.project_path}", "project path")
        return [self.terraform_binary, chdir, operation, *flags]

    def _variable_args(
        self,
        var_file: Optional[str],
        variables: Optional[Dict[str, Any]],
        var_types: Optional[Dict[str, str]],
    ) -> List[str]:
        args: List[str] = []
        if var_file:
            self._add_var_file(args, var_file)
        if variables:
            self._add_variables(args, variables, var_types or {})
        return args

    def _add_var_file(self, cmd: List[str], var_file: str):
        path = InputSanitizer.sanitize_file_path(var_file)
        cmd.append(self._checked(f"-var-file={path}", "var file"))

    def _add_variables(self, cmd: List[str], variables: Dict[str, Any], var_types: Dict[str, str]):
        """Append ``-var name=value`` pairs, rendering each value for its declared type."""
        for name, value in variables.items():
            InputSanitizer.sanitize_variable_name(name)
            rendered = InputSanitizer.sanitize_variable_value(value, var_types.get(name, "string"))
            cmd.extend(["-var", self._checked(f"{name}={rendered}", f"variable {name}")])

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _result(self, operation: str, exit_code: int, stdout: List[str], stderr: List[str]) -> CommandResult:
        if exit_code != 0:
            logger.error(f"terraform {operation} failed with exit code {exit_code}")
        return CommandResult(
            exit_code=exit_code,
            stdout="\n".join(stdout),
            stderr="\n".join(stderr),
            success=exit_code == 0,
            command=operation,
        )

    def _execute(
        self,
        cmd: List[str],
        operation: str,
        output_callback: Optional[LineCallback] = None,
    ) -> CommandResult:
        """
        Run ``cmd``, streaming redacted stdout and stderr lines to ``output_callback``.

        stderr is drained on a separate thread so neither pipe can fill up
        and block terraform. A timeout or a missing binary gives exit code -1.
        """
        stdout_lines: List[str] = []
        stderr_lines: List[str] = []

        def _consume(stream, sink: List[str]):
            for raw in stream:
                line = self._redactor.redact(raw.rstrip("\n"))
                sink.append(line)
                if output_callback:
                    output_callback(line)

        logger.info(f"Running terraform {operation} in {self.project_path}")
        try:
            process = subprocess.Popen(
                cmd,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                shell=False,
                creationflags=subprocess_creation_flags(),
            )
        except OSError as e:
            logger.error(f"Failed to start terraform {operation}: {e}")
            return self._result(operation, -1, [], [str(e)])

        self._process = process
        timed_out = threading.Event()

        def _expire():
            timed_out.set()
            logger.error(f"terraform {operation} timed out after {self._timeout}s")
            self.cancel()

        # Stops terraform even while its output is still being read.
        timer = threading.Timer(self._timeout, _expire)
        timer.daemon = True
        timer.start()
        try:
            reader = threading.Thread(target=_consume, args=(process.stderr, stderr_lines), daemon=True)
            reader.start()
            _consume(process.stdout, stdout_lines)
            reader.join(timeout=self._timeout)
            process.wait(timeout=self._timeout)
        except subprocess.TimeoutExpired:
            logger.error(f"terraform {operation} timed out after {self._timeout}s")
            process.terminate()
            return self._result(operation, -1, stdout_lines, ["Command timed out"])
        except KeyboardInterrupt:
            logger.warning(f"Interrupted, stopping terraform {operation}")
            self.cancel()
            raise
        finally:
            timer.cancel()
            self._process = None

        if timed_out.is_set():
            return self._result(operation, -1, stdout_lines, ["Command timed out"])
        return self._result(operation, process.returncode, stdout_lines, stderr_lines)


def parse_output_json(text: str, show_sensitive: bool = False) -> Dict[str, Any]:
    """
    Turn ``terraform output -json`` into ``{name: value}``.

    Raises:
        RuntimeError: If the text isn't valid JSON
    """
    try:
        raw = json.loads(text or "{}")
    except json.JSONDecodeError as e:
        raise RuntimeError(f"Invalid JSON from terraform output: {e}")

    return {
        name: REDACTED if entry.get("sensitive") and not show_sensitive else entry.get("value")
        for name, entry in raw.items()
    }

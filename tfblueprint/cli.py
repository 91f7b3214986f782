"""
Command-line interface for tfblueprint.

Generates standard environment modules and guides, checks variable files
against the module rules, and runs the Terraform workflow
(init, validate, plan, apply, output, destroy, workspace) on a generated module.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import Settings
from .core import TerraformParser, TerraformRunner, TfvarsHandler, WorkspaceManager
from .core.terraform_runner import CommandResult
from .docs import GuideBuilder, standards_guide
from .security import OutputRedactor, SecurityError
from .standards.catalog import (
    ENVIRONMENTS,
    MODULE_DISPLAY_NAMES,
    PROVIDER_DISPLAY_NAMES,
    module_catalog,
    parse_module_kind,
    parse_provider,
)
from .standards.naming import NamingConvention
from .templates import (
    BootstrapScript,
    ModuleRenderer,
    default_log_destination,
    find_module_spec,
    get_module_spec,
)
from .templates.renderer import TEMPLATES_DIR
from .utils import setup_logging, validate_module_dir, validate_terraform_installed
from .utils.logger import get_log_dir
from .validation import ValidationReport, VariableValidator, check_declared

logger = logging.getLogger(__name__)

app = typer.Typer(
    no_args_is_help=True,
    help="Standard Terraform environment modules for AWS, Azure and GCP.",
)
workspace_app = typer.Typer(no_args_is_help=True, help="Manage Terraform workspaces of a module.")
app.add_typer(workspace_app, name="workspace")
config_app = typer.Typer(no_args_is_help=True, help="Show or change tfblueprint settings.")
app.add_typer(config_app, name="config")

_console = Console()
_err_console = Console(stderr=True)


def _version_callback(value: bool):
    if value:
        typer.echo(f"tfblueprint {__version__}")
        raise typer.Exit()


@app.callback()
def _root(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging."),
    log_file: bool = typer.Option(True, "--log-file/--no-log-file", help="Also log to a file."),
    version: bool = typer.Option(
        False, "--version", callback=_version_callback, is_eager=True,
        help="Show the version and exit.",
    ),
):
    settings = Settings()
    level = "DEBUG" if verbose else settings.get("log_level", "INFO")
    setup_logging(log_level=level, log_file=log_file)
    ctx.obj = settings


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _settings(ctx: typer.Context) -> Settings:
    return ctx.obj if isinstance(ctx.obj, Settings) else Settings()


def _fail(message: str, code: int = 1):
    _err_console.print(f"[red]Error:[/red] {escape(message)}", highlight=False, soft_wrap=True)
    raise typer.Exit(code)


def _print_line(line: str):
    _console.print(line, markup=False, highlight=False, soft_wrap=True)


def _print_report(report: ValidationReport):
    for issue in report.errors:
        _err_console.print(
            f"[red]ERROR[/red] {issue.variable}: {escape(issue.message)}", highlight=False, soft_wrap=True,
        )
    for issue in report.warnings:
        _err_console.print(
            f"[yellow]WARNING[/yellow] {issue.variable}: {escape(issue.message)}", highlight=False, soft_wrap=True,
        )


def _parse_module(provider: str, kind: str):
    try:
        return parse_provider(provider), parse_module_kind(kind)
    except ValueError as e:
        _fail(str(e))


def _resolve_var_file(module_dir: Path, environment: Optional[str], var_file: Optional[Path]) -> Optional[Path]:
    """Pick the variable file from --var-file or environments/<env>.tfvars."""
    if var_file is not None:
        return var_file
    if environment is None:
        return None
    if environment not in ENVIRONMENTS:
        _fail(f"Unknown environment '{environment}', expected one of: {', '.join(ENVIRONMENTS)}")
    path = module_dir / "environments" / f"{environment}.tfvars"
    if not path.is_file():
        _fail(f"No variable file for {environment}: {path}")
    return path


def _declared_variables(module_dir: Path):
    """Variables of a module; exits when a .tf file doesn't parse."""
    parser = TerraformParser(str(module_dir))
    valid, error = parser.validate_syntax()
    if not valid:
        _fail(f"{module_dir}: {error}")
    return parser.parse_variables()


def _check_var_file(module_dir: Path, var_file: Path) -> ValidationReport:
    """
    Validate a .tfvars file against the variables a module declares.

    Generated modules, including ones with variables added by hand, get
    every rule checked; other modules only get required/unknown variable
    checks.
    """
    try:
        values = TfvarsHandler.parse_tfvars(str(var_file))
    except FileNotFoundError:
        _fail(f"Variable file not found: {var_file}")
    except ValueError as e:
        _fail(str(e))

    declared = _declared_variables(module_dir)
    spec = find_module_spec(var.name for var in declared)
    if spec is not None:
        logger.debug(f"Checking {var_file} against {spec.name}")
        return VariableValidator(spec).validate(values, extra_declared=declared)

    logger.info(f"{module_dir} is not a generated module, checking required variables only")
    return check_declared(values, declared)


def _redactor_for(module_dir: Path, var_file: Optional[Path]) -> OutputRedactor:
    """Build a redactor for the sensitive values found in the variable file."""
    if var_file is None:
        return OutputRedactor()
    declared = _declared_variables(module_dir)
    sensitive = [var.name for var in declared if var.sensitive]
    try:
        values = TfvarsHandler.parse_tfvars(str(var_file))
    except (FileNotFoundError, ValueError) as e:
        _fail(str(e))
    return OutputRedactor.from_variables(values, sensitive)


def _runner(ctx: typer.Context, module_dir: Path) -> TerraformRunner:
    settings = _settings(ctx)
    try:
        return TerraformRunner(
            str(module_dir),
            terraform_binary=settings.get("terraform_binary", "terraform"),
            timeout=settings.get("command_timeout", 1800),
        )
    except SecurityError as e:
        _fail(str(e))


def _workspaces(ctx: typer.Context, module_dir: Path) -> WorkspaceManager:
    try:
        return WorkspaceManager(
            str(module_dir),
            terraform_binary=_settings(ctx).get("terraform_binary", "terraform"),
        )
    except SecurityError as e:
        _fail(str(e))


def _finish(result: CommandResult):
    if not result.success:
        _fail(f"terraform {result.command} failed (exit code {result.exit_code})", result.exit_code or 1)


def _prepare_run(ctx: typer.Context, module_dir: Path, environment: Optional[str],
                 var_file: Optional[Path], use_workspace: bool, skip_check: bool):
    """Shared steps of plan/apply/destroy: resolve, check, redact, select workspace."""
    var_file = _resolve_var_file(module_dir, environment, var_file)
    if var_file is not None and not skip_check:
        report = _check_var_file(module_dir, var_file)
        _print_report(report)
        if not report.is_valid:
            _fail(f"{var_file} failed validation, nothing was run")

    runner = _runner(ctx, module_dir)
    if var_file is not None:
        runner.set_redactor(_redactor_for(module_dir, var_file))

    if use_workspace:
        if environment is None:
            _fail("--workspace needs --env")
        if not _workspaces(ctx, module_dir).ensure_workspace(environment):
            _fail(f"Could not select workspace {environment}")

    return runner, var_file


# ---------------------------------------------------------------------------
# Catalog, generation and guides
# ---------------------------------------------------------------------------

@app.command()
def catalog(
    provider: Optional[str] = typer.Option(None, "--provider", "-p", help="Only list this provider."),
):
    """List the available environment modules."""
    only = None
    if provider:
        try:
            only = parse_provider(provider)
        except ValueError as e:
            _fail(str(e))

    table = Table(title="Environment modules")
    table.add_column("Module", style="bright_green", no_wrap=True)
    table.add_column("Provider", style="white")
    table.add_column("Kind", style="white")
    table.add_column("Variables", justify="right")
    table.add_column("Required", justify="right")
    table.add_column("Bootstrap", style="dim")

    for p, kind in module_catalog():
        if only is not None and p != only:
            continue
        spec = get_module_spec(p, kind)
        required = sum(1 for var in spec.variables if var.required)
        table.add_row(
            spec.name,
            PROVIDER_DISPLAY_NAMES[p],
            MODULE_DISPLAY_NAMES[kind],
            str(len(spec.variables)),
            str(required),
            spec.bootstrap_file or "-",
        )

    _console.print(table)


@app.command()
def generate(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Cloud provider: aws, azure or gcp."),
    kind: str = typer.Argument(..., help="Module kind: vm, kubernetes or container."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Directory to write the module to."),
    project_name: str = typer.Option("myapp", "--project", help="Project name used in the example files."),
    owner_email: Optional[str] = typer.Option(None, "--owner", help="Owner email for the Owner tag."),
    cost_center: Optional[str] = typer.Option(None, "--cost-center", help="Cost center tag value."),
    region: Optional[str] = typer.Option(None, "--region", help="Region for the example files."),
    force: bool = typer.Option(False, "--force", "-f", help="Overwrite existing files."),
):
    """Generate a module with per-environment .tfvars files and a README guide."""
    settings = _settings(ctx)
    p, k = _parse_module(provider, kind)
    spec = get_module_spec(p, k)

    owner_email = owner_email or settings.get("owner_email")
    cost_center = cost_center or settings.get("cost_center")
    region = region or settings.region_for(p.value)

    validator = VariableValidator(spec)
    report = ValidationReport()
    for name, value in (("project_name", project_name), ("owner_email", owner_email),
                        ("cost_center", cost_center)):
        for message in validator.validate_value(name, value):
            report.add(name, message)
    if not report.is_valid:
        _print_report(report)
        raise typer.Exit(1)

    out = output or Path(settings.get("output_dir", ".")) / spec.name
    try:
        written = ModuleRenderer(p, k).write(out, overwrite=force)
    except FileExistsError as e:
        _fail(f"{e} (use --force to overwrite)")

    written.extend(TfvarsHandler.write_environment_files(
        spec, str(out / "environments"), project_name, owner_email, cost_center, region,
    ))
    written.append(
        GuideBuilder(p, k, project_name, owner_email, cost_center, region).write(out / "README.md")
    )

    problems = NamingConvention(project_name, "prod", p).check_names()
    for problem in problems:
        _err_console.print(f"[yellow]WARNING[/yellow] {escape(problem)}", highlight=False, soft_wrap=True)

    _console.print(f"[green]Generated[/green] {spec.name} in {out}", highlight=False)
    for path in written:
        _print_line(f"  {path.relative_to(out)}")


@app.command()
def check(
    module_dir: Path = typer.Argument(..., exists=True, file_okay=False, help="Module directory."),
    var_file: Path = typer.Argument(..., exists=True, dir_okay=False, help=".tfvars file to check."),
    strict: bool = typer.Option(False, "--strict", help="Treat warnings as errors."),
):
    """Check a .tfvars file against the module's variable rules."""
    report = _check_var_file(module_dir, var_file)
    _print_report(report)

    if not report.is_valid or (strict and report.warnings):
        raise typer.Exit(1)

    _console.print(
        f"[green]OK[/green] {var_file.name}: {len(report.warnings)} warning(s)", highlight=False,
    )


@app.command()
def guide(
    ctx: typer.Context,
    provider: Optional[str] = typer.Argument(None, help="Provider of a module guide."),
    kind: Optional[str] = typer.Argument(None, help="Kind of a module guide."),
    project_name: str = typer.Option("myapp", "--project", help="Project name used in examples."),
    owner_email: Optional[str] = typer.Option(None, "--owner", help="Owner email used in examples."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file."),
):
    """Print the multi-cloud standards guide, or the guide of one module."""
    settings = _settings(ctx)
    owner_email = owner_email or settings.get("owner_email")
    cost_center = settings.get("cost_center", "engineering")

    try:
        if provider is None:
            text = standards_guide(project_name, owner_email, cost_center)
        else:
            if kind is None:
                _fail("A module guide needs both provider and kind")
            p, k = _parse_module(provider, kind)
            builder = GuideBuilder(p, k, project_name, owner_email, cost_center,
                                   settings.region_for(p.value))
            text = builder.render()
    except ValueError as e:
        _fail(str(e))

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(text, encoding="utf-8")
        _console.print(f"[green]Wrote[/green] {output}", highlight=False)
    else:
        typer.echo(text, nl=False)


@app.command()
def bootstrap(
    provider: str = typer.Argument("aws", help="Cloud provider: aws, azure or gcp."),
    project_name: str = typer.Option("myapp", "--project", help="Project name."),
    environment: str = typer.Option("dev", "--env", help="Environment."),
    port: int = typer.Option(8080, "--port", help="Application port Nginx proxies to."),
    log_group: Optional[str] = typer.Option(None, "--log-group", help="Log destination name."),
    custom_script: Optional[Path] = typer.Option(
        None, "--custom-script", exists=True, dir_okay=False,
        help="Shell fragment appended at the end of the script.",
    ),
    raw: bool = typer.Option(False, "--raw", help="Print the templatefile() source instead."),
):
    """Preview the VM bootstrap script with values substituted."""
    try:
        p = parse_provider(provider)
    except ValueError as e:
        _fail(str(e))

    script = BootstrapScript(p)
    if raw:
        typer.echo(script.source(), nl=False)
        return

    fragment = custom_script.read_text(encoding="utf-8") if custom_script else ""
    text = script.render(
        log_group_name=log_group if log_group is not None
        else default_log_destination(p, project_name, environment),
        application_port=port,
        environment=environment,
        project_name=project_name,
        custom_script=fragment,
    )
    typer.echo(text, nl=False)


# ---------------------------------------------------------------------------
# Terraform workflow
# ---------------------------------------------------------------------------

_MODULE_DIR = typer.Argument(Path("."), exists=True, file_okay=False, help="Module directory.")


@app.command()
def init(
    ctx: typer.Context,
    module_dir: Path = _MODULE_DIR,
    backend_config: Optional[List[str]] = typer.Option(
        None, "--backend-config", help="Backend setting as key=value, repeatable.",
    ),
    upgrade: bool = typer.Option(False, "--upgrade", help="Upgrade provider plugins."),
):
    """Run terraform init in a module."""
    backend = {}
    for item in backend_config or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            _fail(f"Invalid --backend-config '{item}', expected key=value")
        backend[key] = value

    runner = _runner(ctx, module_dir)
    try:
        result = runner.init(backend_config=backend or None, upgrade=upgrade, output_callback=_print_line)
    except SecurityError as e:
        _fail(str(e))
    _finish(result)


@app.command()
def validate(ctx: typer.Context, module_dir: Path = _MODULE_DIR):
    """Run terraform validate in an initialized module."""
    result = _runner(ctx, module_dir).validate(output_callback=_print_line)
    _finish(result)


@app.command()
def plan(
    ctx: typer.Context,
    module_dir: Path = _MODULE_DIR,
    environment: Optional[str] = typer.Option(None, "--env", "-e", help="Use environments/<env>.tfvars."),
    var_file: Optional[Path] = typer.Option(None, "--var-file", help="Variable file to use."),
    out: Optional[str] = typer.Option(None, "--out", help="Save the plan to this file."),
    destroy_plan: bool = typer.Option(False, "--destroy", help="Plan the destruction of all resources."),
    use_workspace: bool = typer.Option(False, "--workspace", help="Select (or create) a workspace named after --env."),
    skip_check: bool = typer.Option(False, "--skip-check", help="Don't validate the variable file first."),
):
    """Run terraform plan with an environment's variable file."""
    runner, var_file = _prepare_run(ctx, module_dir, environment, var_file, use_workspace, skip_check)
    try:
        result = runner.plan(
            var_file=str(var_file) if var_file else None,
            out_file=out,
            destroy=destroy_plan,
            output_callback=_print_line,
        )
    except SecurityError as e:
        _fail(str(e))
    _finish(result)


@app.command()
def apply(
    ctx: typer.Context,
    module_dir: Path = _MODULE_DIR,
    plan_file: Optional[str] = typer.Option(None, "--plan", help="Apply a saved plan."),
    environment: Optional[str] = typer.Option(None, "--env", "-e", help="Use environments/<env>.tfvars."),
    var_file: Optional[Path] = typer.Option(None, "--var-file", help="Variable file to use."),
    auto_approve: bool = typer.Option(False, "--auto-approve", "-y", help="Skip the confirmation."),
    use_workspace: bool = typer.Option(False, "--workspace", help="Select (or create) a workspace named after --env."),
    skip_check: bool = typer.Option(False, "--skip-check", help="Don't validate the variable file first."),
):
    """Run terraform apply."""
    if plan_file and (environment or var_file):
        _fail("--plan can't be combined with --env or --var-file")

    runner, var_file = _prepare_run(ctx, module_dir, environment, var_file, use_workspace, skip_check)

    if not auto_approve and _settings(ctx).confirm_required("apply"):
        typer.confirm(f"Apply changes in {module_dir}?", abort=True)

    try:
        result = runner.apply(
            plan_file=plan_file,
            var_file=str(var_file) if var_file else None,
            auto_approve=True,
            output_callback=_print_line,
        )
    except SecurityError as e:
        _fail(str(e))
    _finish(result)


@app.command()
def destroy(
    ctx: typer.Context,
    module_dir: Path = _MODULE_DIR,
    environment: Optional[str] = typer.Option(None, "--env", "-e", help="Use environments/<env>.tfvars."),
    var_file: Optional[Path] = typer.Option(None, "--var-file", help="Variable file to use."),
    auto_approve: bool = typer.Option(False, "--auto-approve", "-y", help="Skip the confirmation."),
    use_workspace: bool = typer.Option(False, "--workspace", help="Select a workspace named after --env."),
):
    """Run terraform destroy."""
    runner, var_file = _prepare_run(ctx, module_dir, environment, var_file, use_workspace, skip_check=True)

    if not auto_approve and _settings(ctx).confirm_required("destroy"):
        typer.confirm(f"Destroy all resources managed in {module_dir}?", abort=True)

    try:
        result = runner.destroy(
            var_file=str(var_file) if var_file else None,
            auto_approve=True,
            output_callback=_print_line,
        )
    except SecurityError as e:
        _fail(str(e))
    _finish(result)


@app.command()
def output(
    ctx: typer.Context,
    module_dir: Path = _MODULE_DIR,
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Show a single output."),
    as_json: bool = typer.Option(False, "--json", help="Print outputs as JSON."),
    show_sensitive: bool = typer.Option(False, "--show-sensitive", help="Don't mask sensitive outputs."),
):
    """Show the outputs of an applied module."""
    runner = _runner(ctx, module_dir)
    try:
        values = runner.output_values(show_sensitive=show_sensitive)
    except RuntimeError as e:
        _fail(str(e))

    if name is not None:
        if name not in values:
            _fail(f"No output named '{name}'")
        values = {name: values[name]}

    if as_json:
        typer.echo(json.dumps(values, indent=2))
        return

    table = Table(title="Outputs")
    table.add_column("Name", style="bright_green", no_wrap=True)
    table.add_column("Value", style="white")
    for key, value in values.items():
        table.add_row(key, value if isinstance(value, str) else json.dumps(value))
    _console.print(table)


# ---------------------------------------------------------------------------
# Workspaces
# ---------------------------------------------------------------------------

@workspace_app.command("list")
def workspace_list(ctx: typer.Context, module_dir: Path = _MODULE_DIR):
    """List workspaces, marking the current one."""
    manager = _workspaces(ctx, module_dir)
    for ws in manager.list_workspaces():
        marker = "*" if ws.is_current else " "
        _print_line(f"{marker} {ws.name}")

    missing = [env for env, exists in manager.environment_workspaces().items() if not exists]
    if missing:
        _err_console.print(
            f"[dim]No workspace yet for: {', '.join(missing)} (plan --env <env> --workspace creates it)[/dim]",
            highlight=False, soft_wrap=True,
        )


@workspace_app.command("show")
def workspace_show(ctx: typer.Context, module_dir: Path = _MODULE_DIR):
    """Print the current workspace."""
    _print_line(_workspaces(ctx, module_dir).get_current_workspace())


@workspace_app.command("select")
def workspace_select(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Workspace name."),
    module_dir: Path = _MODULE_DIR,
):
    """Switch to an existing workspace."""
    manager = _workspaces(ctx, module_dir)
    try:
        ok = manager.switch_workspace(name)
    except SecurityError as e:
        _fail(str(e))
    if not ok:
        _fail(f"Could not select workspace {name}")
    _console.print(f"Switched to workspace [bold]{name}[/bold]", highlight=False)


@workspace_app.command("new")
def workspace_new(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Workspace name."),
    module_dir: Path = _MODULE_DIR,
):
    """Create a workspace and switch to it."""
    manager = _workspaces(ctx, module_dir)
    try:
        ok = manager.create_workspace(name)
    except SecurityError as e:
        _fail(str(e))
    if not ok:
        _fail(f"Could not create workspace {name}")
    _console.print(f"Created workspace [bold]{name}[/bold]", highlight=False)


@workspace_app.command("delete")
def workspace_delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Workspace name."),
    module_dir: Path = _MODULE_DIR,
    force: bool = typer.Option(False, "--force", help="Delete even if it still tracks resources."),
):
    """Delete a workspace."""
    manager = _workspaces(ctx, module_dir)
    try:
        ok = manager.delete_workspace(name, force=force)
    except SecurityError as e:
        _fail(str(e))
    if not ok:
        _fail(f"Could not delete workspace {name}")
    _console.print(f"Deleted workspace [bold]{name}[/bold]", highlight=False)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

@config_app.command("show")
def config_show(ctx: typer.Context):
    """Print all settings, defaults included."""
    settings = _settings(ctx)
    _print_line(json.dumps(settings.as_dict(), indent=2, sort_keys=True))


@config_app.command("get")
def config_get(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted setting name, e.g. regions.aws."),
):
    """Print one setting."""
    missing = object()
    value = _settings(ctx).get(key, missing)
    if value is missing:
        _fail(f"Unknown setting: {key}")
    _print_line(value if isinstance(value, str) else json.dumps(value, sort_keys=True))


@config_app.command("set")
def config_set(
    ctx: typer.Context,
    key: str = typer.Argument(..., help="Dotted setting name, e.g. confirmations.apply."),
    value: str = typer.Argument(..., help="JSON value; anything that isn't JSON is stored as a string."),
):
    """Change one setting and save the settings file."""
    if not all(key.split(".")):
        _fail(f"Invalid setting name: {key}")
    try:
        parsed = json.loads(value)
    except ValueError:
        parsed = value

    settings = _settings(ctx)
    settings.set(key, parsed)
    settings.save()
    if not settings.config_file.is_file():
        _fail(f"Could not write {settings.config_file}")
    _console.print(f"{escape(key)} = {escape(json.dumps(parsed))}", highlight=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

@app.command()
def doctor(
    ctx: typer.Context,
    module_dir: Optional[Path] = typer.Argument(None, help="Also check this module directory."),
):
    """Check the Terraform installation and configuration."""
    settings = _settings(ctx)
    binary = settings.get("terraform_binary", "terraform")

    table = Table(title="tfblueprint doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    installed, version = validate_terraform_installed(binary)
    detail = (version or "version unknown") if installed else f"'{binary}' not found on PATH"
    table.add_row("Terraform", "OK" if installed else "FAIL", detail)

    table.add_row(
        "Settings",
        "OK" if settings.config_file.exists() else "DEFAULT",
        str(settings.config_file),
    )
    table.add_row("Output dir", "OK", str(settings.get("output_dir")))

    templates = sorted(TEMPLATES_DIR.rglob("*.j2"))
    table.add_row("Templates", "OK" if templates else "FAIL", f"{len(templates)} in {TEMPLATES_DIR}")
    table.add_row("Logs", "OK", str(get_log_dir()))

    module_ok = True
    if module_dir is not None:
        module_ok = _check_module(table, module_dir)

    _console.print(table)

    if not installed or not module_ok:
        raise typer.Exit(1)


def _check_module(table: Table, module_dir: Path) -> bool:
    """Add the module rows to the doctor table; False when the module is broken."""
    complete, missing = validate_module_dir(str(module_dir))
    table.add_row("Module", "OK" if complete else "FAIL",
                  str(module_dir) if complete else f"missing: {', '.join(missing)}")
    if not complete:
        return False

    parser = TerraformParser(str(module_dir))
    valid, error = parser.validate_syntax()
    table.add_row("Syntax", "OK" if valid else "FAIL", error or "all .tf files parse")
    if not valid:
        return False

    variables = parser.parse_variables()
    required = sum(1 for var in variables if var.is_required())
    checked = sum(1 for var in variables if var.error_messages())
    table.add_row(
        "Variables", "OK",
        f"{len(variables)} declared, {required} required, {checked} with validation",
    )

    outputs = parser.parse_outputs()
    sensitive = sum(1 for out in outputs if out.sensitive)
    table.add_row("Outputs", "OK" if outputs else "WARN", f"{len(outputs)} declared, {sensitive} sensitive")

    resources = parser.resource_types()
    table.add_row("Resources", "OK" if resources else "WARN", ", ".join(resources) or "none declared")

    spec = find_module_spec(var.name for var in variables)
    table.add_row("Standard", "OK" if spec else "-", spec.name if spec else "not a generated module")
    return True


def main():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()

"""ionflake CLI.

Builds artifacts, runs composed wrappers and enters the development
environment declared in flake.yaml.
"""

import functools
import logging
import os
import subprocess
import sys
from pathlib import Path

import click

from .config.descriptor import create_default_descriptor
from .config.descriptor import load_descriptor
from .config.loader import load_config
from .config.settings import IonflakeSettings
from .errors import IonflakeError
from .models.platforms import host_platform
from .models.wrappers import ExecutionProfile
from .services.flake_evaluator import FlakeEvaluator
from .services.flake_evaluator import PlatformOutputs
from .services.flake_evaluator import summarize
from .services.platform_iterator import first_failure

logger = logging.getLogger(__name__)

PROFILE_CHOICES = [profile.value for profile in ExecutionProfile]


def handle_errors(func):
    """Report evaluation errors and exit with their exit code."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except IonflakeError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(e.exit_code)

    return wrapper


def make_evaluator(settings: IonflakeSettings) -> FlakeEvaluator:
    """Evaluator over the project's descriptor."""
    return FlakeEvaluator(load_descriptor(settings.descriptor_path), settings)


def platform_outputs(settings: IonflakeSettings, system: str | None) -> PlatformOutputs:
    return make_evaluator(settings).evaluate(system or host_platform())


@click.group()
@click.option(
    "--project-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory holding flake.yaml (default: from config, else current directory)",
)
@click.option("--log-level", default=None, help="Logging level (debug, info, warning, error)")
@click.pass_context
def cli(ctx: click.Context, project_root: Path | None, log_level: str | None):
    """ionflake - build and compose the ion shell with its companion services."""
    settings = load_config()
    overrides = {}
    if project_root is not None:
        overrides["project_root"] = str(project_root)
    if log_level is not None:
        overrides["log_level"] = log_level
    if overrides:
        settings = IonflakeSettings(**{**settings.model_dump(), **overrides})

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    ctx.obj = settings


@cli.command()
@click.pass_obj
def init(settings: IonflakeSettings):
    """Write the default flake.yaml."""
    path = settings.descriptor_path
    if create_default_descriptor(path):
        click.echo(f"Created {path}")
    else:
        click.echo(f"{path} already exists")


@cli.command()
@click.pass_obj
@handle_errors
def lock(settings: IonflakeSettings):
    """Resolve every input and record git revisions in the lock file."""
    resolved = make_evaluator(settings).lock()
    for name, item in resolved.items():
        click.echo(f"{name}: {item.locator} → {item.rev or item.path}")
    click.echo(f"Wrote {settings.lock_path}")


@cli.command()
@click.argument("artifact", required=False)
@click.option("--system", default=None, help="Platform to build for (default: host)")
@click.option("--all-systems", is_flag=True, help="Build for every supported platform")
@click.pass_obj
@handle_errors
def build(settings: IonflakeSettings, artifact: str | None, system: str | None, all_systems: bool):
    """Build ARTIFACT (default: the default package) and print its store path."""
    evaluator = make_evaluator(settings)
    name = artifact or evaluator.descriptor.default_package

    if not all_systems:
        built = evaluator.evaluate(system or host_platform()).build(name)
        click.echo(str(built.root))
        return

    results = evaluator.evaluate_all(lambda outputs: outputs.build(name))
    for platform, result in results.items():
        if result.ok:
            click.echo(f"{platform}: {result.value.root}")
        else:
            click.echo(f"{platform}: failed: {result.error}", err=True)

    failure = first_failure(results)
    if failure is not None:
        sys.exit(failure.error.exit_code)


@cli.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@click.option(
    "--profile",
    type=click.Choice(PROFILE_CHOICES),
    default=ExecutionProfile.LOCAL_DEBUG.value,
    show_default=True,
    help="Where the artifacts are taken from",
)
@click.option("--system", default=None, help="Platform to compose for (default: host)")
@click.option("--no-companion", is_flag=True, help="Run the primary without its companion service")
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_errors
def run(settings: IonflakeSettings, profile: str, system: str | None, no_companion: bool, args: tuple[str, ...]):
    """Compose the wrapper for PROFILE and exec it with ARGS.

    The wrapper replaces this process, so the exit code is the primary's own.
    """
    outputs = platform_outputs(settings, system)
    wrapper = outputs.compose(profile, with_companion=not no_companion)
    suffix = "" if not no_companion else "-standalone"
    script = outputs.write_wrapper(f"{wrapper.command}-{profile}{suffix}", wrapper)

    env = dict(os.environ)
    env[settings.root_variable] = settings.project_root
    logger.debug(f"Executing {script}")
    os.execve(str(script), [str(script), *args], env)


@cli.command()
@click.option("--system", default=None, help="Platform to enter (default: host)")
@click.pass_obj
@handle_errors
def develop(settings: IonflakeSettings, system: str | None):
    """Enter the interactive development environment."""
    outputs = platform_outputs(settings, system)
    environment = outputs.dev_environment()
    bin_dir = outputs.dev_bin_dir()
    environment.registry.materialise(bin_dir, environment.name)

    missing = environment.package_set.missing(outputs.descriptor.dev_shell.packages)
    if missing:
        click.echo(f"Warning: packages not found on this host: {', '.join(missing)}", err=True)

    click.echo(environment.registry.menu(environment.name))

    shell = os.environ.get("SHELL", settings.shell)
    env = environment.registry.environment(os.environ, bin_dir, settings.project_root)
    os.execve(shell, [shell], env)


@cli.command()
@click.option("--system", default=None, help="Platform whose commands to list (default: host)")
@click.pass_obj
@handle_errors
def menu(settings: IonflakeSettings, system: str | None):
    """List the development environment's commands."""
    environment = platform_outputs(settings, system).dev_environment()
    click.echo(environment.registry.menu(environment.name))


@cli.command(context_settings={"ignore_unknown_options": True})
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_obj
@handle_errors
def fmt(settings: IonflakeSettings, args: tuple[str, ...]):
    """Check formatting with the environment's fmt command."""
    outputs = platform_outputs(settings, None)
    environment = outputs.dev_environment()
    if "fmt" not in environment.registry:
        click.echo("Error: the development environment declares no 'fmt' command", err=True)
        sys.exit(1)

    bin_dir = outputs.dev_bin_dir()
    environment.registry.materialise(bin_dir, environment.name)
    env = environment.registry.environment(os.environ, bin_dir, settings.project_root)
    result = subprocess.run([str(bin_dir / "fmt"), *args], env=env)
    sys.exit(result.returncode)


@cli.command()
@click.option("--build", "build_packages", is_flag=True, help="Also build packages and packaged wrappers")
@click.pass_obj
@handle_errors
def show(settings: IonflakeSettings, build_packages: bool):
    """Evaluate every platform and show its outputs."""
    evaluator = make_evaluator(settings)
    results = evaluator.evaluate_all(lambda outputs: summarize(outputs, build=build_packages))

    for platform, result in results.items():
        if not result.ok:
            click.echo(f"{platform}: ✗ {result.error}")
            continue
        summary = result.value
        click.echo(f"{platform}: ✓")
        for name, description in summary["packages"].items():
            click.echo(f"  packages.{name}: {description}")
        for name, description in summary["wrappers"].items():
            click.echo(f"  wrappers.{name}: {description}")
        click.echo(f"  devShell.{summary['dev_shell']['name']}: {', '.join(summary['dev_shell']['commands'])}")
        if summary.get("missing_packages"):
            click.echo(f"  warning: missing packages: {', '.join(summary['missing_packages'])}")

    failure = first_failure(results)
    if failure is not None:
        sys.exit(failure.error.exit_code)


def main():
    """Entry point for ionflake CLI."""
    try:
        cli()
    except KeyboardInterrupt:
        click.echo("\nInterrupted")
        sys.exit(130)


if __name__ == "__main__":
    main()

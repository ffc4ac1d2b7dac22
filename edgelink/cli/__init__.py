import logging
import sys
from importlib import metadata
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import click
from appdirs import user_log_dir
from rich.logging import RichHandler

from edgelink.cli.commands import console, run_compile, run_inject_env, run_reconcile
from edgelink.config import AwsConfig

app_logger = logging.getLogger("edgelink")
# Capture everything from 'edgelink'; handlers decide what is shown
app_logger.setLevel(logging.DEBUG)

app_name = "edgelink"
log_dir = Path(user_log_dir(app_name))
log_dir.mkdir(parents=True, exist_ok=True)
log_file_path = log_dir / f"{app_name}.log"
file_handler = TimedRotatingFileHandler(
    filename=str(log_file_path), when="D", interval=1, backupCount=7, encoding="utf-8"
)
file_handler.setLevel(logging.DEBUG)
file_handler.setFormatter(
    logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
)
app_logger.addHandler(file_handler)

# botocore is chatty at DEBUG
logging.getLogger("botocore").setLevel(logging.WARNING)
logging.getLogger("boto3").setLevel(logging.WARNING)

_EXISTING_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)
_NEW_FILE = click.Path(dir_okay=False, writable=True, path_type=Path)


@click.group(invoke_without_command=True)
@click.option(
    "--verbose", "-v", count=True, help="Increase verbosity. -v for INFO, -vv for DEBUG logs."
)
@click.option("--version", is_flag=True, help="Show edgelink version.")
@click.pass_context
def cli(ctx: click.Context, verbose: int, version: bool) -> None:
    """Associate Lambda@Edge functions with CloudFront distributions."""
    if version:
        console.print(f"edgelink version: {metadata.version('edgelink')}", highlight=False)
        sys.exit(0)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())
        ctx.exit(0)

    if verbose > 0:
        console_handler = RichHandler(
            console=console,
            show_time=False,
            show_level=True,
            markup=False,
            tracebacks_suppress=[click],
            rich_tracebacks=True,
        )
        console_handler.setLevel(logging.INFO if verbose == 1 else logging.DEBUG)
        console.print(f"[italic dim]Logs saved to: {log_file_path}[/]")
        app_logger.addHandler(console_handler)


@click.command()
@click.argument("service_file", type=_EXISTING_FILE)
@click.argument("template_file", type=_EXISTING_FILE)
@click.option("--output", "-o", type=_NEW_FILE, help="Write the patched template here.")
@click.option(
    "--pending", type=_NEW_FILE, help="Write associations deferred until after deploy as JSON."
)
def compile(  # noqa: A001
    service_file: Path, template_file: Path, output: Path | None, pending: Path | None
) -> None:
    """Adds Lambda@Edge associations and permissions to a compiled template."""
    rendered = run_compile(service_file, template_file, output=output, pending_output=pending)
    if output is None:
        click.echo(rendered)


@click.command()
@click.argument("service_file", type=_EXISTING_FILE)
@click.argument("template_file", type=_EXISTING_FILE, required=False)
@click.option(
    "--pending",
    type=_EXISTING_FILE,
    help="Read deferred associations written by compile --pending.",
)
@click.option("--profile", default=None, help="AWS profile to use.")
@click.option("--region", default=None, help="AWS region of the stack.")
def reconcile(
    service_file: Path,
    template_file: Path | None,
    pending: Path | None,
    profile: str | None,
    region: str | None,
) -> None:
    """
    Writes deferred associations to deployed distributions.
    Only distributions whose associations differ are updated.
    """
    if template_file is None and pending is None:
        raise click.UsageError("Pass TEMPLATE_FILE or --pending.")
    aws = AwsConfig(profile=profile, region=region)
    run_reconcile(service_file, template_file, aws, pending_file=pending)


@click.command("inject-env")
@click.argument("service_file", type=_EXISTING_FILE)
def inject_env(service_file: Path) -> None:
    """Bakes provider environment variables into packaged edge functions."""
    run_inject_env(service_file)


cli.add_command(compile)
cli.add_command(reconcile)
cli.add_command(inject_env)

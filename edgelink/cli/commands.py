import json
import logging
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

from rich.console import Console

from edgelink.config import AwsConfig, ServiceDefinition, load_service
from edgelink.exceptions import EdgeLinkError
from edgelink.ledger import AssociationLedger
from edgelink.plugin import EdgeLinkPlugin
from edgelink.progress import RichProgressSink

logger = logging.getLogger(__name__)

# Progress and diagnostics go to stderr so a compiled template can be piped from stdout
console = Console(stderr=True)


def _handle_error(error: EdgeLinkError) -> None:
    if os.getenv("EDGELINK_DEBUG", "0") == "1":
        raise error
    logger.error("%s", error)
    console.print(f"[bold red]✗[/bold red] {error}", highlight=False)
    raise SystemExit(1) from None


def _load(service_file: Path, aws: AwsConfig | None = None) -> ServiceDefinition:
    service = load_service(service_file)
    if aws is not None and (aws.profile or aws.region):
        service = replace(
            service,
            aws=AwsConfig(
                profile=aws.profile or service.aws.profile,
                region=aws.region or service.aws.region,
            ),
        )
    return service


def _read_template(template_file: Path) -> dict[str, Any]:
    return json.loads(template_file.read_text(encoding="utf-8"))


def run_compile(
    service_file: Path,
    template_file: Path,
    output: Path | None = None,
    pending_output: Path | None = None,
) -> str:
    """Patch the template. Returns the patched template as JSON."""
    sink = RichProgressSink(console)
    try:
        plugin = EdgeLinkPlugin(_load(service_file), sink=sink)
        template = _read_template(template_file)
        context = plugin.on_compile(template)
    except EdgeLinkError as e:
        _handle_error(e)

    rendered = json.dumps(template, indent=2)
    if output:
        output.write_text(rendered + "\n", encoding="utf-8")
        logger.info("Wrote patched template to %s", output)
    if pending_output:
        pending_output.write_text(
            json.dumps(context.ledger.to_list(), indent=2, ensure_ascii=False) + "\n",
            encoding="utf-8",
        )
        logger.info("Wrote %d pending association(s) to %s", len(context.ledger), pending_output)
    return rendered


def run_reconcile(
    service_file: Path,
    template_file: Path | None,
    aws: AwsConfig,
    pending_file: Path | None = None,
) -> dict[str, bool]:
    """Reconcile the ledger from ``pending_file`` if given, else recompile it from the template."""
    sink = RichProgressSink(console)
    try:
        plugin = EdgeLinkPlugin(_load(service_file, aws), sink=sink)
        if pending_file is not None:
            items = json.loads(pending_file.read_text(encoding="utf-8"))
            context = plugin.restore_context(AssociationLedger.from_list(items))
        else:
            context = plugin.on_compile(_read_template(template_file))
        results = plugin.on_before_finalize_deploy(context)
    except EdgeLinkError as e:
        _handle_error(e)

    updated = sum(results.values())
    console.print(
        f"[bold green]✓[/bold green] {len(results)} distribution(s) checked, {updated} updated"
    )
    return results


def run_inject_env(service_file: Path) -> list[str]:
    try:
        plugin = EdgeLinkPlugin(_load(service_file), sink=RichProgressSink(console))
        injected = plugin.on_after_package()
    except EdgeLinkError as e:
        _handle_error(e)

    console.print(
        f"[bold green]✓[/bold green] Injected environment into {len(injected)} function(s)"
    )
    return injected

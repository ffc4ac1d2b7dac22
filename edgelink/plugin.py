import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, final

from edgelink.aws.remote import AwsRemote, RemoteQueries
from edgelink.config import ServiceDefinition
from edgelink.ledger import AssociationLedger
from edgelink.naming import Naming, ServerlessNaming
from edgelink.packaging import inject_environment
from edgelink.progress import ProgressSink, RichProgressSink
from edgelink.reconciler import DistributionReconciler
from edgelink.resolver import PhysicalResolver
from edgelink.schema import configure_schema
from edgelink.template import TemplateAssociator, patch_execution_role

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class ReconcileContext:
    """Handed from the compile step to the deploy step of one run, then discarded."""

    stack_name: str
    ledger: AssociationLedger


class EdgeLinkPlugin:
    """Entry points the host framework calls while packaging and deploying a service.

    The host calls ``on_compile`` with the compiled template, ``on_after_package``
    once artifacts exist, and ``on_before_finalize_deploy`` with the context
    ``on_compile`` returned.
    """

    def __init__(
        self,
        service: ServiceDefinition,
        remote: RemoteQueries | None = None,
        naming: Naming | None = None,
        sink: ProgressSink | None = None,
        schema_handler: object | None = None,
    ):
        self._service = service
        self._settings = service.settings
        self._remote = remote
        self._naming = naming or ServerlessNaming(service.service, service.stage)
        self._sink = sink or RichProgressSink()
        self._context: ReconcileContext | None = None

        if schema_handler is not None:
            configure_schema(schema_handler)

    @property
    def hooks(self) -> dict[str, Callable[..., Any]]:
        return {
            "aws:package:finalize:mergeCustomProviderResources": self.on_compile,
            "after:package:createDeploymentArtifacts": self.on_after_package,
            "before:deploy:finalize": self.on_before_finalize_deploy,
        }

    @property
    def remote(self) -> RemoteQueries:
        if self._remote is None:
            self._remote = AwsRemote(self._service.aws)
        return self._remote

    def on_compile(self, template: dict[str, Any]) -> ReconcileContext:
        """Patch the execution role and wire associations into the template in place."""
        patch_execution_role(template, self._sink)
        associator = TemplateAssociator(self._naming, self._settings, self._sink)
        ledger = associator.associate(self._service.edge_associations(), template)
        self._context = ReconcileContext(stack_name=self._naming.stack_name(), ledger=ledger)
        return self._context

    def restore_context(self, ledger: AssociationLedger) -> ReconcileContext:
        """Context for a ledger written by an earlier compile, e.g. ``compile --pending``."""
        self._context = ReconcileContext(stack_name=self._naming.stack_name(), ledger=ledger)
        return self._context

    def on_after_package(self) -> list[str]:
        return inject_environment(self._service, self._sink)

    def on_before_finalize_deploy(
        self, context: ReconcileContext | None = None
    ) -> dict[str, bool]:
        """Resolve and write deferred associations. Returns the per-distribution update flags."""
        context = context or self._context
        if context is None or not context.ledger:
            self._sink.log("No pending Lambda@Edge associations to reconcile")
            return {}
        try:
            return asyncio.run(self.reconcile(context))
        finally:
            self._context = None

    async def reconcile(self, context: ReconcileContext) -> dict[str, bool]:
        resolver = PhysicalResolver(self.remote, context.stack_name)
        resolved = await resolver.resolve(context.ledger)
        logger.info(
            "Reconciling %d association(s) on stack %s", len(resolved), context.stack_name
        )
        reconciler = DistributionReconciler(
            self.remote, self._sink, poll_interval=self._settings.poll_interval
        )
        return await reconciler.reconcile(resolved)

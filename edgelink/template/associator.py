import logging
from typing import Any

from edgelink.config import EdgeAssociationConfig, EdgeSettings, PathPattern
from edgelink.constants import DISTRIBUTION_RESOURCE_TYPE
from edgelink.exceptions import (
    AssociationConfigError,
    CacheBehaviorNotFoundError,
    DistributionNotFoundError,
    DistributionTypeError,
    FunctionResourceNotFoundError,
    VersionOutputNotFoundError,
)
from edgelink.ledger import AssociationLedger, PendingAssociation
from edgelink.naming import Naming
from edgelink.progress import ProgressSink
from edgelink.template.functions import retain_function, strip_environment

logger = logging.getLogger(__name__)


def _same_path_pattern(candidate: object, wanted: PathPattern) -> bool:
    # A reference such as {"Ref": "ApiPath"} only matches the very same reference.
    return type(candidate) is type(wanted) and candidate == wanted


def find_distribution(template: dict[str, Any], logical_name: str) -> dict[str, Any]:
    distribution = template.get("Resources", {}).get(logical_name)
    if distribution is None:
        raise DistributionNotFoundError(logical_name)
    if distribution.get("Type") != DISTRIBUTION_RESOURCE_TYPE:
        raise DistributionTypeError(logical_name, DISTRIBUTION_RESOURCE_TYPE)
    return distribution


def find_cache_behavior(
    distribution: dict[str, Any], logical_name: str, path_pattern: PathPattern | None
) -> dict[str, Any]:
    """Default behavior without a path pattern, otherwise the behavior matching it exactly."""
    distribution_config = distribution["Properties"]["DistributionConfig"]
    if path_pattern is None:
        return distribution_config["DefaultCacheBehavior"]

    for behavior in distribution_config.get("CacheBehaviors") or []:
        if _same_path_pattern(behavior.get("PathPattern"), path_pattern):
            return behavior
    raise CacheBehaviorNotFoundError(logical_name, path_pattern)


class TemplateAssociator:
    """Attaches edge functions to distributions while the template is being compiled.

    Distributions created by this template are wired in place through a reference to
    the function's version output. Distributions addressed by physical id, or every
    distribution when ``defer`` is set, are recorded in the returned ledger instead
    and associated after deployment.
    """

    def __init__(self, naming: Naming, settings: EdgeSettings, sink: ProgressSink):
        self._naming = naming
        self._settings = settings
        self._sink = sink

    def associate(
        self, associations: dict[str, list[EdgeAssociationConfig]], template: dict[str, Any]
    ) -> AssociationLedger:
        ledger = AssociationLedger()
        for function_name, configs in associations.items():
            for config in configs:
                self._associate_one(template, function_name, config, ledger)
        logger.debug("Compiled associations, %d deferred until after deploy", len(ledger))
        return ledger

    def _associate_one(
        self,
        template: dict[str, Any],
        function_name: str,
        config: EdgeAssociationConfig,
        ledger: AssociationLedger,
    ) -> None:
        logical_id = self._naming.logical_id_for_function(function_name)
        output_name = self._naming.version_output_name_for_function(function_name)

        function_resource = template.get("Resources", {}).get(logical_id)
        if function_resource is None:
            raise FunctionResourceNotFoundError(function_name, logical_id)
        version_logical_id = self._version_logical_id(template, output_name)

        if config.is_external:
            self._reject_ambiguous_reference(template, config)
            pending = self._pending(config, function_name, logical_id, output_name)
        elif self._settings.defer:
            distribution = find_distribution(template, config.distribution)
            find_cache_behavior(distribution, config.distribution, config.path_pattern)
            pending = self._pending(config, function_name, logical_id, output_name)
        else:
            pending = None
            distribution = find_distribution(template, config.distribution)
            behavior = find_cache_behavior(distribution, config.distribution, config.path_pattern)

        strip_environment(function_resource, logical_id, self._sink)
        if self._settings.retain:
            retain_function(function_resource)

        if pending is not None:
            ledger.add(pending)
            self._sink.log(
                f'Deferred "{config.event_type}" association of function "{function_name}" '
                f'to distribution "{config.distribution_label}" until after deploy'
            )
            return

        associations = behavior.get("LambdaFunctionAssociations")
        if not isinstance(associations, list):
            associations = behavior["LambdaFunctionAssociations"] = []
        associations.append(
            {
                "EventType": config.event_type,
                "IncludeBody": config.include_body,
                "LambdaFunctionARN": {"Ref": version_logical_id},
            }
        )
        self._sink.log(
            f'Added "{config.event_type}" Lambda@Edge association for version '
            f'"{version_logical_id}" to distribution "{config.distribution}"'
            + (f' (path pattern "{config.path_pattern}")' if config.path_pattern else "")
            + (" (IncludeBody)" if config.include_body else "")
        )

    @staticmethod
    def _version_logical_id(template: dict[str, Any], output_name: str) -> str:
        output = template.get("Outputs", {}).get(output_name)
        value = output.get("Value") if output else None
        version_logical_id = value.get("Ref") if isinstance(value, dict) else None
        if not version_logical_id:
            raise VersionOutputNotFoundError(output_name)
        return version_logical_id

    @staticmethod
    def _reject_ambiguous_reference(
        template: dict[str, Any], config: EdgeAssociationConfig
    ) -> None:
        if config.distribution is None:
            return
        resource = template.get("Resources", {}).get(config.distribution)
        if resource is not None and resource.get("Type") == DISTRIBUTION_RESOURCE_TYPE:
            raise AssociationConfigError(
                f'Function "{config.function_name}": distribution "{config.distribution}" is '
                f'created by this template but "distributionID" {config.distribution_id} was '
                "also given; declare only one of them"
            )

    @staticmethod
    def _pending(
        config: EdgeAssociationConfig, function_name: str, logical_id: str, output_name: str
    ) -> PendingAssociation:
        if config.path_pattern is not None and not isinstance(config.path_pattern, str):
            raise AssociationConfigError(
                f'Function "{function_name}": a deferred association needs a literal '
                f"pathPattern, got template reference {config.path_pattern}"
            )
        return PendingAssociation(
            function_name=function_name,
            function_logical_id=logical_id,
            version_output_name=output_name,
            event_type=config.event_type,
            distribution_logical_name=config.distribution,
            distribution_id=config.distribution_id,
            path_pattern=config.path_pattern,
            include_body=config.include_body,
        )

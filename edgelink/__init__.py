from edgelink.config import (
    AwsConfig,
    EdgeAssociationConfig,
    EdgeSettings,
    ServiceDefinition,
    load_service,
)
from edgelink.plugin import EdgeLinkPlugin, ReconcileContext

__all__ = [
    "AwsConfig",
    "EdgeAssociationConfig",
    "EdgeLinkPlugin",
    "EdgeSettings",
    "ReconcileContext",
    "ServiceDefinition",
    "load_service",
]

class EdgeLinkError(Exception):
    """Base class for all errors raised while associating edge functions."""


class AssociationConfigError(EdgeLinkError, ValueError):
    """Raised at compile time when an edge association declaration is invalid."""


class InvalidEventTypeError(AssociationConfigError):
    def __init__(self, function_name: str, event_type: object, allowed: tuple[str, ...]):
        self.function_name = function_name
        self.event_type = event_type
        super().__init__(
            f'Function "{function_name}": "{event_type}" is not a valid event type, '
            f"must be one of: {', '.join(allowed)}"
        )


class DistributionNotFoundError(AssociationConfigError):
    def __init__(self, logical_name: str):
        self.logical_name = logical_name
        super().__init__(f'Could not find resource with logical name "{logical_name}"')


class DistributionTypeError(AssociationConfigError):
    def __init__(self, logical_name: str, expected_type: str):
        self.logical_name = logical_name
        super().__init__(
            f'Resource with logical name "{logical_name}" is not type {expected_type}'
        )


class CacheBehaviorNotFoundError(AssociationConfigError):
    def __init__(self, distribution: str, path_pattern: object):
        self.distribution = distribution
        self.path_pattern = path_pattern
        super().__init__(
            f'Could not find cache behavior in "{distribution}" with path pattern "{path_pattern}"'
        )


class VersionOutputNotFoundError(AssociationConfigError):
    def __init__(self, output_name: str):
        self.output_name = output_name
        super().__init__(
            f'Could not find output by name of "{output_name}" or value from it to use version ARN'
        )


class FunctionResourceNotFoundError(AssociationConfigError):
    def __init__(self, function_name: str, logical_id: str):
        self.function_name = function_name
        self.logical_id = logical_id
        super().__init__(
            f'Could not find function resource "{logical_id}" for function "{function_name}"'
        )


class PackagingError(EdgeLinkError, ValueError):
    """Raised after packaging when an artifact cannot be prepared for the edge."""


class ArtifactNotConfiguredError(PackagingError):
    def __init__(self, function_name: str):
        self.function_name = function_name
        super().__init__(f"No deployment artifact configured for function '{function_name}'")


class HandlerFileNotFoundError(PackagingError):
    def __init__(self, function_name: str, entry_name: str, artifact: object):
        self.function_name = function_name
        self.entry_name = entry_name
        super().__init__(
            f"Handler file '{entry_name}' of function '{function_name}' not found in {artifact}"
        )


class ResolutionError(EdgeLinkError):
    """Raised after deployment when a physical identifier cannot be resolved."""


class StackOutputNotFoundError(ResolutionError):
    def __init__(self, stack_name: str, output_key: str):
        self.stack_name = stack_name
        self.output_key = output_key
        super().__init__(f'Stack "{stack_name}" has no output "{output_key}"')


class StackResourceNotFoundError(ResolutionError):
    def __init__(self, stack_name: str, logical_id: str):
        self.stack_name = stack_name
        self.logical_id = logical_id
        super().__init__(f'Stack "{stack_name}" has no resource with logical id "{logical_id}"')


class DistributionVersionConflictError(EdgeLinkError):
    """Raised when a conditional distribution update is rejected for a stale ETag."""

    def __init__(self, distribution_id: str, etag: str):
        self.distribution_id = distribution_id
        self.etag = etag
        super().__init__(
            f'Distribution "{distribution_id}" was modified concurrently '
            f'(ETag "{etag}" is stale). '
            "Re-run the deploy to reconcile against the latest configuration."
        )

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, TypedDict

from edgelink.constants import DEFAULT_POLL_INTERVAL
from edgelink.event_types import VALID_EVENT_TYPES, EventType, is_valid_event_type
from edgelink.exceptions import AssociationConfigError, InvalidEventTypeError

# A path pattern is either a literal or a template reference such as {"Ref": "Param"}
type PathPattern = str | dict[str, Any]


@dataclass(frozen=True, kw_only=True)
class AwsConfig:
    """AWS configuration for remote queries.

    Both profile and region are optional overrides. When not specified, the standard
    boto3 credential and region resolution chain applies (environment variables,
    shared config files, SSO cache, instance roles).
    """

    profile: str | None = None
    region: str | None = None


class EdgeAssociationRaw(TypedDict, total=False):
    """A single ``lambdaAtEdge`` entry as written in the service file."""

    distribution: str
    distributionID: str
    eventType: EventType
    pathPattern: PathPattern
    includeBody: bool
    injectEnv: bool


_RAW_KEY_TO_FIELD = {
    "distribution": "distribution",
    "distributionID": "distribution_id",
    "eventType": "event_type",
    "pathPattern": "path_pattern",
    "includeBody": "include_body",
    "injectEnv": "inject_env",
}


@dataclass(frozen=True, kw_only=True)
class EdgeAssociationConfig:
    function_name: str
    event_type: EventType
    distribution: str | None = None
    distribution_id: str | None = None
    path_pattern: PathPattern | None = None
    include_body: bool = False
    inject_env: bool = False

    def __post_init__(self) -> None:
        if not is_valid_event_type(self.event_type):
            raise InvalidEventTypeError(self.function_name, self.event_type, VALID_EVENT_TYPES)

        if self.distribution is None and self.distribution_id is None:
            raise AssociationConfigError(
                f'Function "{self.function_name}": lambdaAtEdge must declare '
                '"distribution" or "distributionID"'
            )
        references = (
            ("distribution", self.distribution),
            ("distributionID", self.distribution_id),
        )
        for name, value in references:
            if value is not None and (not isinstance(value, str) or not value.strip()):
                raise AssociationConfigError(
                    f'Function "{self.function_name}": "{name}" must be a non-empty string'
                )

        self._validate_path_pattern()

        for name, value in (("includeBody", self.include_body), ("injectEnv", self.inject_env)):
            if not isinstance(value, bool):
                raise AssociationConfigError(
                    f'Function "{self.function_name}": "{name}" must be a boolean, '
                    f"got {type(value).__name__}"
                )

    def _validate_path_pattern(self) -> None:
        if self.path_pattern is None:
            return
        if isinstance(self.path_pattern, str):
            if not self.path_pattern:
                raise AssociationConfigError(
                    f'Function "{self.function_name}": "pathPattern" cannot be empty'
                )
        elif not isinstance(self.path_pattern, dict):
            raise AssociationConfigError(
                f'Function "{self.function_name}": "pathPattern" must be a string or a '
                f"template reference, got {type(self.path_pattern).__name__}"
            )

    @classmethod
    def from_raw(cls, function_name: str, raw: EdgeAssociationRaw) -> "EdgeAssociationConfig":
        if not isinstance(raw, dict):
            raise AssociationConfigError(
                f'Function "{function_name}": lambdaAtEdge entries must be objects, '
                f"got {type(raw).__name__}"
            )
        unknown = sorted(set(raw) - set(_RAW_KEY_TO_FIELD))
        if unknown:
            raise AssociationConfigError(
                f'Function "{function_name}": unknown lambdaAtEdge properties: '
                f"{', '.join(unknown)}"
            )
        if "eventType" not in raw:
            raise AssociationConfigError(
                f'Function "{function_name}": lambdaAtEdge must declare "eventType"'
            )
        kwargs = {_RAW_KEY_TO_FIELD[key]: value for key, value in raw.items()}
        return cls(function_name=function_name, **kwargs)

    @property
    def is_external(self) -> bool:
        """True when the distribution is addressed by physical id."""
        return self.distribution_id is not None

    @property
    def distribution_label(self) -> str:
        return self.distribution or self.distribution_id


def normalize_associations(
    function_name: str, raw: EdgeAssociationRaw | list[EdgeAssociationRaw]
) -> list[EdgeAssociationConfig]:
    """Turn a single entry or a list of entries into an ordered list of configs."""
    entries = raw if isinstance(raw, list) else [raw]
    return [EdgeAssociationConfig.from_raw(function_name, entry) for entry in entries]


@dataclass(frozen=True, kw_only=True)
class EdgeSettings:
    """Global settings read from ``custom.lambdaAtEdge``.

    Attributes:
        retain: Keep associated functions on stack updates. A function cannot be
            deleted while a distribution still references one of its versions.
        defer: Associate template-resident distributions after deployment
            instead of embedding the association in the template.
        poll_interval: Seconds between distribution status checks.
    """

    retain: bool = False
    defer: bool = False
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self) -> None:
        for name in ("retain", "defer"):
            if not isinstance(getattr(self, name), bool):
                raise AssociationConfigError(f'custom.lambdaAtEdge.{name} must be a boolean')
        if (
            isinstance(self.poll_interval, bool)
            or not isinstance(self.poll_interval, int | float)
            or self.poll_interval <= 0
        ):
            raise AssociationConfigError(
                "custom.lambdaAtEdge.pollInterval must be a positive number of seconds"
            )

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> "EdgeSettings":
        raw = raw or {}
        known = {"retain": "retain", "defer": "defer", "pollInterval": "poll_interval"}
        unknown = sorted(set(raw) - set(known))
        if unknown:
            raise AssociationConfigError(
                f"Unknown custom.lambdaAtEdge settings: {', '.join(unknown)}"
            )
        return cls(**{known[key]: value for key, value in raw.items()})


@dataclass(frozen=True, kw_only=True)
class ServiceDefinition:
    """The slice of the host's service description that edge association needs."""

    service: str
    stage: str = "dev"
    aws: AwsConfig = field(default_factory=AwsConfig)
    runtime: str | None = None
    environment: dict[str, str] = field(default_factory=dict)
    functions: dict[str, dict[str, Any]] = field(default_factory=dict)
    custom: dict[str, Any] = field(default_factory=dict)
    artifact: str | None = None
    service_dir: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], service_dir: Path | None = None
    ) -> "ServiceDefinition":
        if not isinstance(data.get("service"), str) or not data["service"]:
            raise ValueError("Service definition must contain a non-empty 'service' name")

        provider = data.get("provider") or {}
        functions = data.get("functions") or {}
        if not isinstance(functions, dict):
            raise TypeError(f"'functions' must be a mapping, got {type(functions).__name__}")

        return cls(
            service=data["service"],
            stage=provider.get("stage", "dev"),
            aws=AwsConfig(profile=provider.get("profile"), region=provider.get("region")),
            runtime=provider.get("runtime"),
            environment=dict(provider.get("environment") or {}),
            functions=functions,
            custom=dict(data.get("custom") or {}),
            artifact=(data.get("package") or {}).get("artifact"),
            service_dir=service_dir or Path.cwd(),
        )

    @property
    def settings(self) -> EdgeSettings:
        return EdgeSettings.from_raw(self.custom.get("lambdaAtEdge"))

    def runtime_for(self, function_name: str) -> str:
        return self.functions[function_name].get("runtime") or self.runtime or "unknown"

    def edge_associations(self) -> dict[str, list[EdgeAssociationConfig]]:
        """Associations per function, in declaration order. Functions without any are skipped."""
        return {
            name: normalize_associations(name, definition["lambdaAtEdge"])
            for name, definition in self.functions.items()
            if definition and definition.get("lambdaAtEdge")
        }


def load_service(path: Path) -> ServiceDefinition:
    data = json.loads(path.read_text(encoding="utf-8"))
    return ServiceDefinition.from_dict(data, service_dir=path.resolve().parent)

from collections.abc import Iterator
from dataclasses import asdict, dataclass
from typing import Any, final

from edgelink.event_types import EventType
from edgelink.exceptions import AssociationConfigError


@final
@dataclass(frozen=True, kw_only=True)
class PendingAssociation:
    """An association that can only be written once the stack is deployed."""

    function_name: str
    function_logical_id: str
    version_output_name: str
    event_type: EventType
    distribution_logical_name: str | None = None
    distribution_id: str | None = None
    path_pattern: str | None = None
    include_body: bool = False

    @property
    def distribution_key(self) -> str:
        return self.distribution_id or self.distribution_logical_name

    @property
    def behavior_label(self) -> str:
        return f'path pattern "{self.path_pattern}"' if self.path_pattern else "default behavior"

    def resolve(self, function_arn: str, distribution_id: str) -> "ResolvedAssociation":
        return ResolvedAssociation(
            pending=self, function_arn=function_arn, distribution_id=distribution_id
        )


@final
@dataclass(frozen=True, kw_only=True)
class ResolvedAssociation:
    pending: PendingAssociation
    function_arn: str
    distribution_id: str

    @property
    def event_type(self) -> EventType:
        return self.pending.event_type

    @property
    def path_pattern(self) -> str | None:
        return self.pending.path_pattern

    @property
    def include_body(self) -> bool:
        return self.pending.include_body


class AssociationLedger:
    """Ordered pending associations, produced at compile time and consumed once after deploy.

    Keeps declaration order so logs are deterministic and refuses a second association
    for the same event type on the same behavior.
    """

    def __init__(self, associations: list[PendingAssociation] | None = None):
        self._associations: list[PendingAssociation] = []
        for association in associations or []:
            self.add(association)

    def add(self, association: PendingAssociation) -> None:
        key = self._key(association)
        for existing in self._associations:
            if self._key(existing) == key:
                raise AssociationConfigError(
                    f'Functions "{existing.function_name}" and "{association.function_name}" '
                    f'both declare "{association.event_type}" on the '
                    f'{association.behavior_label} of "{association.distribution_key}"'
                )
        self._associations.append(association)

    @staticmethod
    def _key(association: PendingAssociation) -> tuple[str, str | None, str]:
        return association.distribution_key, association.path_pattern, association.event_type

    def __iter__(self) -> Iterator[PendingAssociation]:
        return iter(self._associations)

    def __len__(self) -> int:
        return len(self._associations)

    def __bool__(self) -> bool:
        return bool(self._associations)

    @property
    def all_have_distribution_ids(self) -> bool:
        return all(association.distribution_id for association in self._associations)

    def to_list(self) -> list[dict[str, Any]]:
        return [asdict(association) for association in self._associations]

    @classmethod
    def from_list(cls, items: list[dict[str, Any]]) -> "AssociationLedger":
        return cls([PendingAssociation(**item) for item in items])

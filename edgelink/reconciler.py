import asyncio
import copy
import logging
from contextlib import aclosing
from typing import Any

from edgelink.aws.remote import RemoteQueries
from edgelink.constants import DEFAULT_POLL_INTERVAL, DEPLOYED_STATUS
from edgelink.exceptions import CacheBehaviorNotFoundError
from edgelink.ledger import ResolvedAssociation
from edgelink.progress import ProgressSink, ticker

logger = logging.getLogger(__name__)


def apply_to_behavior(behavior: dict[str, Any], desired: list[ResolvedAssociation]) -> bool:
    """Bring one cache behavior's function associations in line with ``desired``.

    Event type is the key within a behavior. Missing entries are appended, entries
    pointing at another ARN get only their ARN replaced in place. Returns True when
    the behavior was modified.
    """
    current = behavior.get("LambdaFunctionAssociations") or {}
    items = list(current.get("Items") or [])
    by_event_type = {item["EventType"]: item for item in items}
    changed = False

    for association in desired:
        existing = by_event_type.get(association.event_type)
        if existing is None:
            entry = {
                "LambdaFunctionARN": association.function_arn,
                "EventType": association.event_type,
                "IncludeBody": association.include_body,
            }
            items.append(entry)
            by_event_type[association.event_type] = entry
            changed = True
        elif existing["LambdaFunctionARN"] != association.function_arn:
            existing["LambdaFunctionARN"] = association.function_arn
            changed = True

    if changed:
        behavior["LambdaFunctionAssociations"] = {"Quantity": len(items), "Items": items}
    return changed


def _find_live_behavior(
    distribution_config: dict[str, Any], distribution_id: str, path_pattern: str | None
) -> dict[str, Any]:
    if path_pattern is None:
        return distribution_config["DefaultCacheBehavior"]
    for behavior in (distribution_config.get("CacheBehaviors") or {}).get("Items") or []:
        if behavior["PathPattern"] == path_pattern:
            return behavior
    raise CacheBehaviorNotFoundError(distribution_id, path_pattern)


def apply_to_distribution_config(
    distribution_config: dict[str, Any],
    distribution_id: str,
    desired: list[ResolvedAssociation],
) -> bool:
    """Apply desired associations to every targeted behavior. Returns the dirty flag."""
    by_path_pattern: dict[str | None, list[ResolvedAssociation]] = {}
    for association in desired:
        by_path_pattern.setdefault(association.path_pattern, []).append(association)

    changed = False
    for path_pattern, associations in by_path_pattern.items():
        behavior = _find_live_behavior(distribution_config, distribution_id, path_pattern)
        if apply_to_behavior(behavior, associations):
            logger.debug(
                "Distribution %s: behavior %s needs an update",
                distribution_id,
                path_pattern or "default",
            )
            changed = True
    return changed


class DistributionReconciler:
    """Writes pending associations to live distributions after deployment.

    One fetch, diff and conditional update per distribution, however many functions
    target it. Distributions are handled concurrently. A stale ETag fails that
    distribution's pass; nothing is retried here.
    """

    def __init__(
        self,
        remote: RemoteQueries,
        sink: ProgressSink,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self._remote = remote
        self._sink = sink
        self._poll_interval = poll_interval

    async def wait_until_deployed(self, distribution_id: str) -> None:
        async with aclosing(ticker(self._poll_interval)) as ticks:
            async for tick in ticks:
                status = await self._remote.get_distribution_status(distribution_id)
                if status == DEPLOYED_STATUS:
                    break
                if tick == 0:
                    self._sink.log(
                        f'Waiting for distribution "{distribution_id}" to be deployed '
                        f"(currently {status})"
                    )
                self._sink.progress()
        self._sink.end_progress()
        logger.debug("Distribution %s is deployed", distribution_id)

    async def reconcile_distribution(
        self, distribution_id: str, desired: list[ResolvedAssociation]
    ) -> bool:
        """Returns True when an update was written."""
        await self.wait_until_deployed(distribution_id)

        snapshot = await self._remote.get_distribution_config(distribution_id)
        distribution_config = copy.deepcopy(snapshot.config)
        if not apply_to_distribution_config(distribution_config, distribution_id, desired):
            self._sink.log(
                f'Distribution "{distribution_id}" already has the desired function associations'
            )
            return False

        self._sink.log(f'Updating function associations of distribution "{distribution_id}"')
        await self._remote.update_distribution(distribution_id, distribution_config, snapshot.etag)
        await self.wait_until_deployed(distribution_id)
        self._sink.log(f'Distribution "{distribution_id}" updated')
        return True

    async def reconcile(self, resolved: list[ResolvedAssociation]) -> dict[str, bool]:
        """Reconcile every targeted distribution. Returns whether each one was updated."""
        by_distribution: dict[str, list[ResolvedAssociation]] = {}
        for association in resolved:
            by_distribution.setdefault(association.distribution_id, []).append(association)

        results = await asyncio.gather(
            *(
                self.reconcile_distribution(distribution_id, associations)
                for distribution_id, associations in by_distribution.items()
            )
        )
        return dict(zip(by_distribution, results, strict=True))

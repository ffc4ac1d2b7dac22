import asyncio
import logging

from edgelink.aws.remote import RemoteQueries
from edgelink.exceptions import StackOutputNotFoundError, StackResourceNotFoundError
from edgelink.ledger import AssociationLedger, ResolvedAssociation

logger = logging.getLogger(__name__)


class PhysicalResolver:
    """Turns pending associations into concrete ARNs and distribution ids.

    Reads deployed stack state only. Function ARNs come from the stack outputs,
    distribution ids from the stack resources unless already known.
    """

    def __init__(self, remote: RemoteQueries, stack_name: str):
        self._remote = remote
        self._stack_name = stack_name

    async def resolve_function_arns(self, ledger: AssociationLedger) -> dict[str, str]:
        """Version ARN per version output name."""
        stack = await self._remote.describe_stack(self._stack_name)
        outputs = {
            output["OutputKey"]: output["OutputValue"] for output in stack.get("Outputs") or []
        }

        arns = {}
        for association in ledger:
            output_name = association.version_output_name
            if output_name not in outputs:
                raise StackOutputNotFoundError(self._stack_name, output_name)
            arns[output_name] = outputs[output_name]
        return arns

    async def resolve_distribution_ids(self, ledger: AssociationLedger) -> dict[str, str]:
        """Physical id per distribution logical name (or per id when only the id is known).

        A given id stays authoritative for its own association: the name next to it is
        a label that several external distributions may share, so ``resolve`` never
        looks such associations up here.
        """
        ids = {
            association.distribution_logical_name or association.distribution_id: (
                association.distribution_id
            )
            for association in ledger
            if association.distribution_id
        }
        if ledger.all_have_distribution_ids:
            logger.debug("All distribution ids were given, skipping stack resource lookup")
            return ids

        resources = await self._remote.describe_stack_resources(self._stack_name)
        physical_ids = {
            resource["LogicalResourceId"]: resource.get("PhysicalResourceId")
            for resource in resources
        }
        for association in ledger:
            if association.distribution_id:
                continue
            logical_name = association.distribution_logical_name
            if not physical_ids.get(logical_name):
                raise StackResourceNotFoundError(self._stack_name, logical_name)
            ids[logical_name] = physical_ids[logical_name]
        return ids

    async def resolve(self, ledger: AssociationLedger) -> list[ResolvedAssociation]:
        arns, distribution_ids = await asyncio.gather(
            self.resolve_function_arns(ledger), self.resolve_distribution_ids(ledger)
        )
        resolved = [
            association.resolve(
                function_arn=arns[association.version_output_name],
                distribution_id=(
                    association.distribution_id
                    or distribution_ids[association.distribution_logical_name]
                ),
            )
            for association in ledger
        ]
        for association in resolved:
            logger.debug(
                "Resolved %s → %s on distribution %s",
                association.pending.function_name,
                association.function_arn,
                association.distribution_id,
            )
        return resolved

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any, Protocol, final

import boto3
from botocore.exceptions import ClientError

from edgelink.config import AwsConfig
from edgelink.constants import CLOUDFRONT_REGION
from edgelink.exceptions import DistributionVersionConflictError

logger = logging.getLogger(__name__)


@final
@dataclass(frozen=True)
class DistributionSnapshot:
    """A distribution configuration together with the ETag it was read at."""

    config: dict[str, Any]
    etag: str


class RemoteQueries(Protocol):
    async def describe_stack(self, stack_name: str) -> dict[str, Any]: ...

    async def describe_stack_resources(self, stack_name: str) -> list[dict[str, Any]]: ...

    async def get_distribution_config(self, distribution_id: str) -> DistributionSnapshot: ...

    async def get_distribution_status(self, distribution_id: str) -> str: ...

    async def update_distribution(
        self, distribution_id: str, config: dict[str, Any], etag: str
    ) -> str: ...


class AwsRemote:
    """CloudFormation and CloudFront queries backed by boto3.

    boto3 is blocking, so every call runs in the default executor. Clients are
    thread safe and shared between concurrent calls.
    """

    def __init__(self, aws: AwsConfig) -> None:
        self._session = boto3.Session(profile_name=aws.profile, region_name=aws.region)
        self._cloudformation = self._session.client("cloudformation")
        # CloudFront is a global service served from us-east-1
        self._cloudfront = self._session.client("cloudfront", region_name=CLOUDFRONT_REGION)

    @staticmethod
    async def _call(fn: Callable[..., Any], **kwargs: Any) -> Any:
        return await asyncio.get_running_loop().run_in_executor(None, partial(fn, **kwargs))

    async def describe_stack(self, stack_name: str) -> dict[str, Any]:
        response = await self._call(self._cloudformation.describe_stacks, StackName=stack_name)
        return response["Stacks"][0]

    async def describe_stack_resources(self, stack_name: str) -> list[dict[str, Any]]:
        """All resources of the stack. Paginated, so stacks over 100 resources are complete."""

        def list_all() -> list[dict[str, Any]]:
            paginator = self._cloudformation.get_paginator("list_stack_resources")
            resources = []
            for page in paginator.paginate(StackName=stack_name):
                resources.extend(page.get("StackResourceSummaries", []))
            return resources

        return await self._call(list_all)

    async def get_distribution_config(self, distribution_id: str) -> DistributionSnapshot:
        response = await self._call(self._cloudfront.get_distribution_config, Id=distribution_id)
        return DistributionSnapshot(config=response["DistributionConfig"], etag=response["ETag"])

    async def get_distribution_status(self, distribution_id: str) -> str:
        response = await self._call(self._cloudfront.get_distribution, Id=distribution_id)
        return response["Distribution"]["Status"]

    async def update_distribution(
        self, distribution_id: str, config: dict[str, Any], etag: str
    ) -> str:
        """Conditionally write the configuration. Returns the new ETag."""
        try:
            response = await self._call(
                self._cloudfront.update_distribution,
                Id=distribution_id,
                IfMatch=etag,
                DistributionConfig=config,
            )
        except ClientError as e:
            if e.response["Error"]["Code"] == "PreconditionFailed":
                raise DistributionVersionConflictError(distribution_id, etag) from e
            raise
        logger.debug("Updated distribution %s, new ETag %s", distribution_id, response["ETag"])
        return response["ETag"]

import logging
from typing import Any

from edgelink.constants import (
    EDGE_LAMBDA_SERVICE_PRINCIPAL,
    EDGE_LOG_ACTIONS,
    EDGE_LOG_RESOURCE,
    EXECUTION_ROLE_LOGICAL_ID,
    LAMBDA_SERVICE_PRINCIPAL,
)
from edgelink.progress import ProgressSink

logger = logging.getLogger(__name__)


def _service_principals(statement: dict[str, Any]) -> list[str] | None:
    principal = statement.get("Principal")
    if not isinstance(principal, dict) or "Service" not in principal:
        return None
    if isinstance(principal["Service"], str):
        principal["Service"] = [principal["Service"]]
    return principal["Service"]


def patch_execution_role(template: dict[str, Any], sink: ProgressSink) -> None:
    """Let the shared execution role be assumed at the edge and write any log group.

    Mutates the template in place. A template without the execution role is left
    untouched, since not every service uses it.
    """
    role = template.get("Resources", {}).get(EXECUTION_ROLE_LOGICAL_ID)
    if role is None:
        sink.warn(
            "no IAM role for Lambda execution found - can not modify assume role policy"
        )
        return

    properties = role["Properties"]
    assume_role_updated = False
    already_allowed = False

    for statement in properties["AssumeRolePolicyDocument"]["Statement"]:
        services = _service_principals(statement)
        if services is None:
            continue
        if EDGE_LAMBDA_SERVICE_PRINCIPAL in services:
            already_allowed = True
            continue
        if LAMBDA_SERVICE_PRINCIPAL in services:
            services.append(EDGE_LAMBDA_SERVICE_PRINCIPAL)
            assume_role_updated = True
            sink.log("Updated Lambda assume role policy to allow Lambda@Edge to assume the role")

    # Appended on every compile; the host rebuilds the template from scratch each time.
    properties["Policies"][0]["PolicyDocument"]["Statement"].append(
        {
            "Effect": "Allow",
            "Action": list(EDGE_LOG_ACTIONS),
            "Resource": EDGE_LOG_RESOURCE,
        }
    )
    logger.debug("Granted %s on %s", ", ".join(EDGE_LOG_ACTIONS), EDGE_LOG_RESOURCE)

    if not assume_role_updated and already_allowed:
        sink.log("Lambda assume role policy already allows Lambda@Edge to assume the role")
    elif not assume_role_updated:
        sink.warn(
            "was unable to update the Lambda assume role policy to allow Lambda@Edge "
            "to assume the role"
        )

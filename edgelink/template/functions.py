from typing import Any

from edgelink.progress import ProgressSink


def strip_environment(
    function_resource: dict[str, Any], logical_id: str, sink: ProgressSink
) -> int:
    """Remove environment variables, which the edge runtime does not support.

    Returns the number of variables removed. An ``Environment`` block left empty is
    dropped as well.
    """
    properties = function_resource.get("Properties") or {}
    environment = properties.get("Environment")
    if not environment or "Variables" not in environment:
        return 0

    removed = len(environment["Variables"] or {})
    sink.warn(
        f'Removing {removed} environment variables from function "{logical_id}" '
        "because Lambda@Edge does not support environment variables"
    )
    del environment["Variables"]
    if not environment:
        del properties["Environment"]
    return removed


def retain_function(function_resource: dict[str, Any]) -> None:
    """Keep the function on stack updates; a referenced version cannot be deleted."""
    function_resource["DeletionPolicy"] = "Retain"

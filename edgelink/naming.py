from typing import Protocol


class Naming(Protocol):
    """Maps function names to the identifiers the host framework generates for them."""

    def logical_id_for_function(self, function_name: str) -> str: ...

    def version_output_name_for_function(self, function_name: str) -> str: ...

    def stack_name(self) -> str: ...


def _normalize_function_name(function_name: str) -> str:
    normalized = function_name[:1].upper() + function_name[1:]
    return normalized.replace("-", "Dash").replace("_", "Underscore")


class ServerlessNaming:
    """Naming rules of a Serverless Framework style compiled template.

    For "some-fn" → logical id "SomeDashfnLambdaFunction",
    version output "SomeDashfnLambdaFunctionQualifiedArn".
    """

    def __init__(self, service: str, stage: str):
        self._service = service
        self._stage = stage

    def logical_id_for_function(self, function_name: str) -> str:
        return f"{_normalize_function_name(function_name)}LambdaFunction"

    def version_output_name_for_function(self, function_name: str) -> str:
        return f"{self.logical_id_for_function(function_name)}QualifiedArn"

    def stack_name(self) -> str:
        return f"{self._service}-{self._stage}"

import json
import logging
import shutil
import tempfile
import zipfile
from collections.abc import Callable
from pathlib import Path

from edgelink.config import ServiceDefinition
from edgelink.exceptions import ArtifactNotConfiguredError, HandlerFileNotFoundError
from edgelink.progress import ProgressSink

logger = logging.getLogger(__name__)


def _nodejs_prelude(env_vars: dict[str, str]) -> str:
    lines = [
        f"process.env[{json.dumps(key)}] = {json.dumps(value)};" for key, value in env_vars.items()
    ]
    return "var process={};\nprocess.env={};\n" + "\n".join(lines) + "\n"


def _python_prelude(env_vars: dict[str, str]) -> str:
    lines = [f"os.environ[{key!r}] = {str(value)!r}" for key, value in env_vars.items()]
    return "import os\n" + "\n".join(lines) + "\n"


# runtime prefix → (handler file suffix, prelude builder)
_RUNTIME_PRELUDES = {
    "nodejs": (".js", _nodejs_prelude),
    "python": (".py", _python_prelude),
}


def _runtime_support(runtime: str) -> tuple[str, Callable[[dict[str, str]], str]] | None:
    for prefix, support in _RUNTIME_PRELUDES.items():
        if runtime.startswith(prefix):
            return support
    return None


def functions_to_inject(service: ServiceDefinition, sink: ProgressSink) -> list[str]:
    """Functions with at least one association asking for ``injectEnv`` on a supported runtime."""
    targets = []
    for function_name, associations in service.edge_associations().items():
        if not any(association.inject_env for association in associations):
            continue
        runtime = service.runtime_for(function_name)
        if _runtime_support(runtime) is None:
            sink.warn(
                f"failed to inject env vars into lambda@edge function {function_name}. "
                f"Runtime must be nodejs or python, got {runtime}."
            )
            continue
        targets.append(function_name)
    return targets


def artifact_path(service: ServiceDefinition, function_name: str) -> Path:
    """The function's own artifact or the service artifact, under the service directory."""
    package = service.functions[function_name].get("package") or {}
    artifact = package.get("artifact") or service.artifact
    if not artifact:
        raise ArtifactNotConfiguredError(function_name)
    path = Path(artifact)
    return path if path.is_absolute() else service.service_dir / path


def _rewrite_zip_entry(zip_path: Path, entry_name: str, content: str) -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        rewritten = Path(tmpdir) / zip_path.name
        with (
            zipfile.ZipFile(zip_path, "r") as source,
            zipfile.ZipFile(rewritten, "w", zipfile.ZIP_DEFLATED) as target,
        ):
            for info in source.infolist():
                if info.filename == entry_name:
                    target.writestr(info, content.encode("utf-8"))
                else:
                    target.writestr(info, source.read(info.filename))
        shutil.move(str(rewritten), zip_path)


def inject_function_environment(
    service: ServiceDefinition, function_name: str, sink: ProgressSink
) -> bool:
    """Prepend the provider environment to the function's handler file inside its artifact."""
    env_vars = service.environment
    if not env_vars:
        sink.warn(f"No env vars to inject into {function_name}")
        return False

    suffix, build_prelude = _runtime_support(service.runtime_for(function_name))
    handler = service.functions[function_name]["handler"]
    entry_name = handler.rsplit(".", 1)[0] + suffix
    zip_path = artifact_path(service, function_name)

    with zipfile.ZipFile(zip_path, "r") as archive:
        try:
            contents = archive.read(entry_name).decode("utf-8")
        except KeyError:
            raise HandlerFileNotFoundError(function_name, entry_name, zip_path) from None

    sink.log(f"Injecting {len(env_vars)} env vars directly into the code for {function_name}")
    _rewrite_zip_entry(zip_path, entry_name, build_prelude(env_vars) + contents)
    logger.debug("Rewrote %s in %s", entry_name, zip_path)
    return True


def inject_environment(service: ServiceDefinition, sink: ProgressSink) -> list[str]:
    """Bake environment variables into every artifact that asked for it. Returns the functions."""
    return [
        function_name
        for function_name in functions_to_inject(service, sink)
        if inject_function_environment(service, function_name, sink)
    ]

import zipfile

import pytest

from edgelink.config import ServiceDefinition
from edgelink.exceptions import ArtifactNotConfiguredError, HandlerFileNotFoundError
from edgelink.packaging import (
    artifact_path,
    functions_to_inject,
    inject_environment,
    inject_function_environment,
)

EDGE = {"distributionID": "EABC", "eventType": "viewer-request", "injectEnv": True}


def _service(tmp_path, functions, environment=None, runtime="nodejs20.x", artifact="app.zip"):
    return ServiceDefinition.from_dict(
        {
            "service": "demo",
            "provider": {"runtime": runtime, "environment": environment or {}},
            "functions": functions,
            "package": {"artifact": artifact},
        },
        service_dir=tmp_path,
    )


def _write_zip(path, files):
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in files.items():
            archive.writestr(name, content)


def _read_zip(path, name):
    with zipfile.ZipFile(path) as archive:
        return archive.read(name).decode("utf-8")


def test_functions_to_inject_requires_opt_in(tmp_path, sink):
    service = _service(
        tmp_path,
        {
            "edge": {"handler": "edge.handler", "lambdaAtEdge": EDGE},
            "plain": {
                "handler": "plain.handler",
                "lambdaAtEdge": {"distributionID": "EABC", "eventType": "origin-request"},
            },
            "api": {"handler": "api.handler"},
        },
    )

    assert functions_to_inject(service, sink) == ["edge"]


def test_functions_to_inject_warns_on_unsupported_runtime(tmp_path, sink):
    service = _service(
        tmp_path,
        {"edge": {"handler": "edge.handler", "runtime": "java21", "lambdaAtEdge": EDGE}},
    )

    assert functions_to_inject(service, sink) == []
    assert sink.warnings == [
        "failed to inject env vars into lambda@edge function edge. "
        "Runtime must be nodejs or python, got java21."
    ]


def test_artifact_path_prefers_function_artifact(tmp_path):
    service = _service(
        tmp_path,
        {"edge": {"handler": "edge.handler", "package": {"artifact": "edge.zip"}}},
    )
    assert artifact_path(service, "edge") == tmp_path / "edge.zip"


def test_artifact_path_falls_back_to_service_artifact(tmp_path):
    service = _service(tmp_path, {"edge": {"handler": "edge.handler"}})
    assert artifact_path(service, "edge") == tmp_path / "app.zip"


def test_artifact_path_requires_artifact(tmp_path):
    service = _service(tmp_path, {"edge": {"handler": "edge.handler"}}, artifact=None)
    with pytest.raises(
        ArtifactNotConfiguredError, match="No deployment artifact configured for function 'edge'"
    ):
        artifact_path(service, "edge")


def test_injects_nodejs_prelude(tmp_path, sink):
    _write_zip(
        tmp_path / "app.zip",
        {"src/edge.js": "exports.handler = async () => {};\n", "README": "untouched"},
    )
    service = _service(
        tmp_path,
        {"edge": {"handler": "src/edge.handler", "lambdaAtEdge": EDGE}},
        environment={"STAGE": "dev", "QUOTE": 'say "hi"'},
    )

    assert inject_environment(service, sink) == ["edge"]

    assert _read_zip(tmp_path / "app.zip", "src/edge.js") == (
        "var process={};\n"
        "process.env={};\n"
        'process.env["STAGE"] = "dev";\n'
        'process.env["QUOTE"] = "say \\"hi\\"";\n'
        "exports.handler = async () => {};\n"
    )
    assert _read_zip(tmp_path / "app.zip", "README") == "untouched"
    assert sink.messages == ["Injecting 2 env vars directly into the code for edge"]


def test_injects_python_prelude(tmp_path, sink):
    _write_zip(tmp_path / "app.zip", {"edge.py": "def handler(event, context):\n    pass\n"})
    service = _service(
        tmp_path,
        {"edge": {"handler": "edge.handler", "lambdaAtEdge": EDGE}},
        environment={"STAGE": "dev"},
        runtime="python3.12",
    )

    assert inject_function_environment(service, "edge", sink) is True
    assert _read_zip(tmp_path / "app.zip", "edge.py") == (
        "import os\nos.environ['STAGE'] = 'dev'\ndef handler(event, context):\n    pass\n"
    )


def test_empty_environment_warns_and_leaves_artifact(tmp_path, sink):
    _write_zip(tmp_path / "app.zip", {"edge.js": "original"})
    service = _service(tmp_path, {"edge": {"handler": "edge.handler", "lambdaAtEdge": EDGE}})

    assert inject_environment(service, sink) == []
    assert sink.warnings == ["No env vars to inject into edge"]
    assert _read_zip(tmp_path / "app.zip", "edge.js") == "original"


def test_missing_handler_file(tmp_path, sink):
    _write_zip(tmp_path / "app.zip", {"other.js": ""})
    service = _service(
        tmp_path,
        {"edge": {"handler": "edge.handler", "lambdaAtEdge": EDGE}},
        environment={"STAGE": "dev"},
    )

    with pytest.raises(
        HandlerFileNotFoundError, match="Handler file 'edge.js' of function 'edge' not found"
    ):
        inject_function_environment(service, "edge", sink)

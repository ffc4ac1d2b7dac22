import json
import re

import pytest

from edgelink.config import (
    _RAW_KEY_TO_FIELD,
    AwsConfig,
    EdgeAssociationConfig,
    EdgeAssociationRaw,
    EdgeSettings,
    ServiceDefinition,
    load_service,
    normalize_associations,
)
from edgelink.exceptions import AssociationConfigError, InvalidEventTypeError


def test_raw_dict_keys_match_known_keys():
    assert set(EdgeAssociationRaw.__annotations__) == set(_RAW_KEY_TO_FIELD)


def test_from_raw_converts_camel_case_keys():
    config = EdgeAssociationConfig.from_raw(
        "someFn",
        {
            "distribution": "WebDist",
            "eventType": "origin-request",
            "pathPattern": "/api/*",
            "includeBody": True,
            "injectEnv": True,
        },
    )

    assert config == EdgeAssociationConfig(
        function_name="someFn",
        event_type="origin-request",
        distribution="WebDist",
        path_pattern="/api/*",
        include_body=True,
        inject_env=True,
    )
    assert not config.is_external
    assert config.distribution_label == "WebDist"


def test_from_raw_with_distribution_id_is_external():
    config = EdgeAssociationConfig.from_raw(
        "someFn", {"distributionID": "E2QWRUHAPOMQZL", "eventType": "viewer-request"}
    )
    assert config.is_external
    assert config.distribution_label == "E2QWRUHAPOMQZL"


def test_invalid_event_type_names_value_and_allowed_set():
    with pytest.raises(InvalidEventTypeError) as exc_info:
        EdgeAssociationConfig.from_raw(
            "someFn", {"distribution": "WebDist", "eventType": "viewer-whatever"}
        )

    message = str(exc_info.value)
    assert '"viewer-whatever" is not a valid event type' in message
    assert "someFn" in message
    assert "viewer-request, origin-request, viewer-response, origin-response" in message


def test_invalid_event_type_is_a_value_error():
    with pytest.raises(ValueError, match="is not a valid event type"):
        EdgeAssociationConfig(function_name="f", event_type="Viewer-Request", distribution="D")


def test_missing_event_type():
    with pytest.raises(AssociationConfigError, match='must declare "eventType"'):
        EdgeAssociationConfig.from_raw("someFn", {"distribution": "WebDist"})


def test_missing_distribution_reference():
    with pytest.raises(
        AssociationConfigError, match='must declare "distribution" or "distributionID"'
    ):
        EdgeAssociationConfig.from_raw("someFn", {"eventType": "viewer-request"})


def test_unknown_keys_are_rejected():
    with pytest.raises(AssociationConfigError, match="unknown lambdaAtEdge properties: origin"):
        EdgeAssociationConfig.from_raw(
            "someFn", {"distribution": "WebDist", "eventType": "viewer-request", "origin": "x"}
        )


def test_entry_must_be_an_object():
    with pytest.raises(AssociationConfigError, match="entries must be objects"):
        EdgeAssociationConfig.from_raw("someFn", "WebDist")


@pytest.mark.parametrize(
    ("overrides", "match"),
    [
        ({"distribution": ""}, '"distribution" must be a non-empty string'),
        ({"distribution_id": 42}, '"distributionID" must be a non-empty string'),
        ({"path_pattern": ""}, '"pathPattern" cannot be empty'),
        ({"path_pattern": ["/api/*"]}, '"pathPattern" must be a string or a template reference'),
        ({"include_body": "yes"}, '"includeBody" must be a boolean'),
        ({"inject_env": 1}, '"injectEnv" must be a boolean'),
    ],
)
def test_invalid_field_values(overrides, match):
    kwargs = {"function_name": "f", "event_type": "viewer-request", "distribution": "D"}
    kwargs.update(overrides)
    with pytest.raises(AssociationConfigError, match=re.escape(match)):
        EdgeAssociationConfig(**kwargs)


def test_path_pattern_may_be_a_reference():
    config = EdgeAssociationConfig(
        function_name="f",
        event_type="viewer-request",
        distribution="D",
        path_pattern={"Ref": "AssetsPath"},
    )
    assert config.path_pattern == {"Ref": "AssetsPath"}


def test_normalize_single_object_and_list_alike():
    entry = {"distribution": "WebDist", "eventType": "viewer-request"}

    single = normalize_associations("someFn", entry)
    as_list = normalize_associations("someFn", [entry])

    assert single == as_list
    assert len(single) == 1


def test_normalize_preserves_declaration_order():
    configs = normalize_associations(
        "someFn",
        [
            {"distribution": "WebDist", "eventType": "viewer-response"},
            {"distribution": "WebDist", "eventType": "viewer-request"},
            {"distributionID": "EABC", "eventType": "origin-request"},
        ],
    )
    assert [config.event_type for config in configs] == [
        "viewer-response",
        "viewer-request",
        "origin-request",
    ]


def test_edge_settings_defaults():
    settings = EdgeSettings.from_raw(None)
    assert settings == EdgeSettings(retain=False, defer=False, poll_interval=10.0)


def test_edge_settings_from_raw():
    settings = EdgeSettings.from_raw({"retain": True, "defer": True, "pollInterval": 2})
    assert settings.retain
    assert settings.defer
    assert settings.poll_interval == 2


@pytest.mark.parametrize(
    ("raw", "match"),
    [
        ({"retain": "true"}, "custom.lambdaAtEdge.retain must be a boolean"),
        ({"defer": 1}, "custom.lambdaAtEdge.defer must be a boolean"),
        ({"pollInterval": 0}, "pollInterval must be a positive number"),
        ({"pollInterval": True}, "pollInterval must be a positive number"),
        ({"retian": True}, "Unknown custom.lambdaAtEdge settings: retian"),
    ],
)
def test_edge_settings_invalid(raw, match):
    with pytest.raises(AssociationConfigError, match=match):
        EdgeSettings.from_raw(raw)


def _service_dict():
    return {
        "service": "demo",
        "provider": {
            "stage": "prod",
            "region": "eu-west-1",
            "profile": "deployer",
            "runtime": "nodejs20.x",
            "environment": {"STAGE": "prod"},
        },
        "custom": {"lambdaAtEdge": {"retain": True}},
        "package": {"artifact": ".serverless/demo.zip"},
        "functions": {
            "someFn": {
                "handler": "handler.handle",
                "lambdaAtEdge": {"distribution": "WebDist", "eventType": "viewer-request"},
            },
            "plainFn": {"handler": "plain.handle"},
            "otherFn": {
                "handler": "other.handle",
                "runtime": "python3.12",
                "lambdaAtEdge": [
                    {"distribution": "WebDist", "eventType": "origin-request"},
                    {"distributionID": "EXYZ", "eventType": "origin-response"},
                ],
            },
        },
    }


def test_service_definition_from_dict(tmp_path):
    service = ServiceDefinition.from_dict(_service_dict(), service_dir=tmp_path)

    assert service.service == "demo"
    assert service.stage == "prod"
    assert service.aws == AwsConfig(profile="deployer", region="eu-west-1")
    assert service.environment == {"STAGE": "prod"}
    assert service.artifact == ".serverless/demo.zip"
    assert service.service_dir == tmp_path
    assert service.settings.retain


def test_service_definition_edge_associations_skip_plain_functions():
    service = ServiceDefinition.from_dict(_service_dict())

    associations = service.edge_associations()

    assert list(associations) == ["someFn", "otherFn"]
    assert len(associations["otherFn"]) == 2
    assert associations["otherFn"][1].distribution_id == "EXYZ"


def test_runtime_for_prefers_function_runtime():
    service = ServiceDefinition.from_dict(_service_dict())
    assert service.runtime_for("someFn") == "nodejs20.x"
    assert service.runtime_for("otherFn") == "python3.12"


def test_service_definition_requires_name():
    with pytest.raises(ValueError, match="non-empty 'service' name"):
        ServiceDefinition.from_dict({"functions": {}})


def test_load_service_uses_file_directory(tmp_path):
    service_file = tmp_path / "service.json"
    service_file.write_text(json.dumps(_service_dict()))

    service = load_service(service_file)

    assert service.service == "demo"
    assert service.service_dir == tmp_path.resolve()

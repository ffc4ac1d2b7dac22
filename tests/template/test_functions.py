from edgelink.template.functions import retain_function, strip_environment


def test_strip_environment_removes_variables_and_empty_block(sink):
    resource = {"Properties": {"Environment": {"Variables": {"A": "1", "B": "2"}}}}

    removed = strip_environment(resource, "SomeFnLambdaFunction", sink)

    assert removed == 2
    assert "Environment" not in resource["Properties"]
    assert sink.warnings == [
        'Removing 2 environment variables from function "SomeFnLambdaFunction" '
        "because Lambda@Edge does not support environment variables"
    ]


def test_strip_environment_keeps_other_environment_keys(sink):
    resource = {"Properties": {"Environment": {"Variables": {"A": "1"}, "Other": "kept"}}}

    strip_environment(resource, "SomeFnLambdaFunction", sink)

    assert resource["Properties"]["Environment"] == {"Other": "kept"}


def test_strip_environment_without_variables_is_silent(sink):
    resource = {"Properties": {"Handler": "handler.handle"}}

    assert strip_environment(resource, "SomeFnLambdaFunction", sink) == 0
    assert sink.warnings == []


def test_retain_function():
    resource = {"Type": "AWS::Lambda::Function"}
    retain_function(resource)
    assert resource["DeletionPolicy"] == "Retain"

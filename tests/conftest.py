import copy

import pytest

from .remote_mocks import RecordingSink

BASE_TEMPLATE = {
    "AWSTemplateFormatVersion": "2010-09-09",
    "Resources": {
        "IamRoleLambdaExecution": {
            "Type": "AWS::IAM::Role",
            "Properties": {
                "AssumeRolePolicyDocument": {
                    "Version": "2012-10-17",
                    "Statement": [
                        {
                            "Effect": "Allow",
                            "Principal": {"Service": ["lambda.amazonaws.com"]},
                            "Action": ["sts:AssumeRole"],
                        }
                    ],
                },
                "Policies": [
                    {
                        "PolicyName": "demo-dev-lambda",
                        "PolicyDocument": {
                            "Version": "2012-10-17",
                            "Statement": [
                                {
                                    "Effect": "Allow",
                                    "Action": ["logs:CreateLogStream"],
                                    "Resource": "arn:aws:logs:us-east-1:123456789012:*",
                                }
                            ],
                        },
                    }
                ],
            },
        },
        "SomeFnLambdaFunction": {
            "Type": "AWS::Lambda::Function",
            "Properties": {
                "Handler": "handler.handle",
                "Runtime": "nodejs20.x",
                "Environment": {"Variables": {"STAGE": "dev", "TABLE": "users"}},
            },
        },
        "SomeFnLambdaVersionAbc123": {
            "Type": "AWS::Lambda::Version",
            "Properties": {"FunctionName": {"Ref": "SomeFnLambdaFunction"}},
        },
        "OtherDashfnLambdaFunction": {
            "Type": "AWS::Lambda::Function",
            "Properties": {"Handler": "other.handle", "Runtime": "nodejs20.x"},
        },
        "OtherDashfnLambdaVersionDef456": {
            "Type": "AWS::Lambda::Version",
            "Properties": {"FunctionName": {"Ref": "OtherDashfnLambdaFunction"}},
        },
        "WebDist": {
            "Type": "AWS::CloudFront::Distribution",
            "Properties": {
                "DistributionConfig": {
                    "Enabled": True,
                    "DefaultCacheBehavior": {
                        "TargetOriginId": "website",
                        "ViewerProtocolPolicy": "redirect-to-https",
                    },
                    "CacheBehaviors": [
                        {"PathPattern": "/api/*", "TargetOriginId": "api"},
                        {"PathPattern": {"Ref": "AssetsPath"}, "TargetOriginId": "assets"},
                    ],
                }
            },
        },
        "WebsiteBucket": {"Type": "AWS::S3::Bucket"},
    },
    "Outputs": {
        "SomeFnLambdaFunctionQualifiedArn": {"Value": {"Ref": "SomeFnLambdaVersionAbc123"}},
        "OtherDashfnLambdaFunctionQualifiedArn": {
            "Value": {"Ref": "OtherDashfnLambdaVersionDef456"}
        },
    },
}


@pytest.fixture
def template():
    return copy.deepcopy(BASE_TEMPLATE)


@pytest.fixture
def sink():
    return RecordingSink()

DISTRIBUTION_RESOURCE_TYPE = "AWS::CloudFront::Distribution"
EXECUTION_ROLE_LOGICAL_ID = "IamRoleLambdaExecution"

LAMBDA_SERVICE_PRINCIPAL = "lambda.amazonaws.com"
EDGE_LAMBDA_SERVICE_PRINCIPAL = "edgelambda.amazonaws.com"

# Replicated functions write to log groups named by region of execution, so the
# names cannot be known up front.
EDGE_LOG_ACTIONS = [
    "logs:CreateLogGroup",
    "logs:CreateLogStream",
    "logs:PutLogEvents",
    "logs:DescribeLogStreams",
]
EDGE_LOG_RESOURCE = "arn:aws:logs:*:*:*"

DEPLOYED_STATUS = "Deployed"
DEFAULT_POLL_INTERVAL = 10.0
CLOUDFRONT_REGION = "us-east-1"

import json
import boto3
import os
import logging

logger = logging.getLogger()
logger.setLevel(logging.INFO)

codedeploy = boto3.client('codedeploy')
lambda_client = boto3.client('lambda')

# A GET is rejected before any PayPal or Mailchimp call is made
SMOKE_TEST_EVENT = {
    'httpMethod': 'GET',
    'path': '/ipn',
    'headers': {'User-Agent': 'pre-traffic-hook'},
    'body': None,
    'isBase64Encoded': False
}


def _report(deployment_id, lifecycle_event_hook_execution_id, status):
    codedeploy.put_lifecycle_event_hook_execution_status(
        deploymentId=deployment_id,
        lifecycleEventHookExecutionId=lifecycle_event_hook_execution_id,
        status=status
    )


def lambda_handler(event, context):
    """
    Pre-traffic hook for CodeDeploy.
    Invokes the new version with a GET request and expects 405 back.
    """
    logger.info(f"Pre-traffic hook triggered: {json.dumps(event)}")

    deployment_id = event['DeploymentId']
    lifecycle_event_hook_execution_id = event['LifecycleEventHookExecutionId']

    try:
        target_function = os.environ.get('TARGET_FUNCTION')
        if not target_function:
            raise ValueError("TARGET_FUNCTION environment variable is not set")

        logger.info(f"Running smoke test on {target_function}")

        response = lambda_client.invoke(
            FunctionName=target_function,
            InvocationType='RequestResponse',
            Payload=json.dumps(SMOKE_TEST_EVENT)
        )

        response_payload = json.loads(response['Payload'].read())
        logger.info(f"Test response: {json.dumps(response_payload)}")

        if response.get('FunctionError'):
            raise Exception(f"Function returned error: {response_payload}")

        if response.get('StatusCode') != 200:
            raise Exception(f"Unexpected invocation status code: {response.get('StatusCode')}")

        if response_payload.get('statusCode') != 405:
            raise Exception(f"Expected 405 for GET, got: {response_payload.get('statusCode')}")

        if response_payload.get('body') != 'Method Not Allowed':
            raise Exception(f"Unexpected response body: {response_payload.get('body')}")

        logger.info("Pre-traffic validation passed")
        _report(deployment_id, lifecycle_event_hook_execution_id, 'Succeeded')

        return {
            'statusCode': 200,
            'body': json.dumps('Pre-traffic validation succeeded')
        }

    except Exception as e:
        logger.error(f"Pre-traffic validation failed: {str(e)}", exc_info=True)

        # Report failure - this will prevent deployment
        _report(deployment_id, lifecycle_event_hook_execution_id, 'Failed')

        return {
            'statusCode': 500,
            'body': json.dumps(f'Pre-traffic validation failed: {str(e)}')
        }

import logging
import uuid
import boto3
from botocore.exceptions import BotoCoreError, ClientError
from coding_jojo_app.core import config
from coding_jojo_app.core.exceptions import UpstreamFailure

logger = logging.getLogger(__name__)


def _sns_client():
    return boto3.client(
        "sns",
        region_name=config.AWS_REGION,
        aws_access_key_id=config.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=config.AWS_SECRET_ACCESS_KEY,
    )


async def send_sms(phone_number: str, message: str) -> dict:
    """
    Deliver a text message through the configured provider.
    Returns {"provider", "message_id"}; raises UpstreamFailure on provider errors.
    """
    provider = config.SMS_PROVIDER

    if provider == "mock":
        message_id = f"mock-{uuid.uuid4()}"
        logger.info(f"[mock sms] to={phone_number} id={message_id} text={message}")
        return {"provider": "mock", "message_id": message_id}

    if provider == "sns":
        try:
            response = _sns_client().publish(
                PhoneNumber=phone_number,
                Message=message,
                MessageAttributes={
                    "AWS.SNS.SMS.SenderID": {"DataType": "String", "StringValue": config.SMS_SENDER_ID},
                    "AWS.SNS.SMS.SMSType": {"DataType": "String", "StringValue": "Transactional"},
                },
            )
        except ClientError as e:
            error_message = e.response["Error"]["Message"]
            logger.error(f"SNS publish to {phone_number} failed: {error_message}")
            raise UpstreamFailure("SNS", error_message)
        except BotoCoreError as e:
            logger.error(f"SNS publish to {phone_number} failed: {e}")
            raise UpstreamFailure("SNS", str(e))

        logger.info(f"SMS sent to {phone_number}: {response['MessageId']}")
        return {"provider": "sns", "message_id": response["MessageId"]}

    raise UpstreamFailure("SMS", f"Unsupported SMS provider: {provider}")

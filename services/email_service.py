import logging
import os

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import (
    AWS_ACCESS_KEY,
    AWS_REGION,
    AWS_SECRET_ACCESS_KEY,
    AWS_SES_SENDER_EMAIL,
)

logger = logging.getLogger("journeycraft_api.email")

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates")

# Set up Jinja env
env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml", "html.jinja"]),
)

ses = boto3.client(
    "ses",
    region_name=AWS_REGION,
    aws_access_key_id=str(AWS_ACCESS_KEY) if AWS_ACCESS_KEY else None,
    aws_secret_access_key=str(AWS_SECRET_ACCESS_KEY) if AWS_SECRET_ACCESS_KEY else None,
)


class MailDeliveryError(Exception):
    """Raised when the mail transport refuses or fails to send a message."""


def render_template(name: str, **context) -> str:
    return env.get_template(name).render(**context)


class EmailService:
    def __init__(self, client=ses, sender: str = AWS_SES_SENDER_EMAIL):
        self.client = client
        self.sender = sender

    def send_simple_mail(
        self, to: str, subject: str, body: str, html_body: str | None = None
    ) -> dict:
        message_body = {"Text": {"Data": body}}
        if html_body is not None:
            message_body["Html"] = {"Data": html_body}

        try:
            resp = self.client.send_email(
                Source=self.sender,
                Destination={"ToAddresses": [to]},
                Message={
                    "Subject": {"Data": subject},
                    "Body": message_body,
                },
            )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.exception(f"SES ClientError when sending mail to {to}: {code}")
            raise MailDeliveryError(f"SES rejected the message: {code}") from e
        except BotoCoreError as e:
            logger.exception(f"SES transport error when sending mail to {to}")
            raise MailDeliveryError(str(e)) from e

        logger.info(f"Mail sent to {to}, Message ID: {resp.get('MessageId')}")
        return resp

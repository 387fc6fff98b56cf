from services.email_service import MailDeliveryError


class FakeMailer:
    """Records every message instead of talking to SES."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_simple_mail(self, to, subject, body, html_body=None):
        if self.fail:
            raise MailDeliveryError("SES rejected the message: MessageRejected")
        self.sent.append({"to": to, "subject": subject, "body": body, "html": html_body})
        return {"MessageId": f"fake-{len(self.sent)}"}

    def last_code_for(self, email: str) -> str:
        for message in reversed(self.sent):
            if message["to"] == email:
                return message["body"].rsplit(" ", 1)[-1]
        raise AssertionError(f"no mail sent to {email}")


def verified_token(client, mailer, email: str) -> str:
    """Walk the OTP flow for email and return the resulting otp JWT."""
    resp = client.post("/api/users/send-otp", json={"email": email})
    assert resp.status_code == 200
    code = mailer.last_code_for(email)
    resp = client.post("/api/users/verify-otp", json={"email": email, "otp": code})
    assert resp.status_code == 200
    return resp.json()["jwt"]

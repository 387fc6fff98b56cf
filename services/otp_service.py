import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable

from config import OTP_LIFETIME_MINUTES
from services.email_service import MailDeliveryError, render_template

logger = logging.getLogger("journeycraft_api.otp")

OTP_LENGTH = 6
OTP_SUBJECT = "Thank You For Registering On JourneyCraft"
OTP_BODY_PREFIX = "Your OTP for registration is: "


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_otp() -> str:
    """Uniform draw over [0, 999999], zero-padded to six digits."""
    return f"{secrets.randbelow(10 ** OTP_LENGTH):0{OTP_LENGTH}d}"


@dataclass
class OtpEntry:
    code: str
    issued_at: datetime


class OtpStore:
    """
        Thread-safe email -> code map.
        At most one outstanding code per email; a put replaces the previous one.
        With a lifetime of None or zero, codes never expire.
    """

    def __init__(
        self,
        lifetime: timedelta | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._entries: dict[str, OtpEntry] = {}
        self._lock = threading.Lock()
        self.lifetime = lifetime if lifetime else None
        self._clock = clock

    def _is_expired(self, entry: OtpEntry, now: datetime) -> bool:
        return self.lifetime is not None and now > entry.issued_at + self.lifetime

    def put(self, email: str, code: str) -> None:
        with self._lock:
            self._entries[email] = OtpEntry(code=code, issued_at=self._clock())

    def consume(self, email: str, code: str) -> bool:
        with self._lock:
            entry = self._entries.get(email)
            if entry is None:
                return False

            if self._is_expired(entry, self._clock()):
                del self._entries[email]
                return False

            if not secrets.compare_digest(entry.code.encode(), code.encode()):
                return False

            del self._entries[email]
            return True

    def purge_expired(self) -> int:
        if self.lifetime is None:
            return 0

        now = self._clock()
        with self._lock:
            expired = [
                email
                for email, entry in self._entries.items()
                if self._is_expired(entry, now)
            ]
            for email in expired:
                del self._entries[email]
        return len(expired)

    def __contains__(self, email: str) -> bool:
        with self._lock:
            return email in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class OtpManager:
    def __init__(self, store: OtpStore, mail_sender):
        self.store = store
        self.mail_sender = mail_sender

    def generate_and_send(self, email: str, dispatch: Callable | None = None) -> None:
        """
            Issue a fresh code for email and hand it to the mail sender.

            dispatch schedules the delivery, e.g. BackgroundTasks.add_task.
            Without it the mail is sent inline. Delivery failures are logged
            and never reach the caller.
        """
        otp = generate_otp()
        self.store.put(email, otp)
        logger.info(f"OTP issued for email={email}")

        if dispatch is None:
            self._deliver(email, otp)
        else:
            dispatch(self._deliver, email, otp)

    def _deliver(self, email: str, otp: str) -> None:
        lifetime = self.store.lifetime
        html_body = render_template(
            "otp_email.html.jinja",
            otp=otp,
            lifetime=int(lifetime.total_seconds() // 60) if lifetime else None,
        )
        try:
            self.mail_sender.send_simple_mail(
                email, OTP_SUBJECT, OTP_BODY_PREFIX + otp, html_body=html_body
            )
        except MailDeliveryError:
            logger.exception(f"OTP delivery failed for email={email}")

    def verify(self, email: str, submitted_otp: str) -> bool:
        valid = self.store.consume(email, submitted_otp)
        if valid:
            logger.info(f"OTP verified for email={email}")
        else:
            logger.warning(f"OTP verification failed for email={email}")
        return valid


def create_otp_store() -> OtpStore:
    return OtpStore(lifetime=timedelta(minutes=OTP_LIFETIME_MINUTES))

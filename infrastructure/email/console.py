"""Development EmailProvider that writes verification codes to the log.

Used when no ZeptoMail token is configured so the full register/verify flow
can be exercised locally without a mail transport.
"""

from typing import Optional

from shared.logging import get_logger

log = get_logger(__name__)


class ConsoleEmailProvider:
    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str, ttl_minutes: int
    ) -> bool:
        # Logged under "message" so the redaction processor leaves the code visible
        log.warning(
            "verification_email_not_sent",
            to_email=email,
            user_name=user_name,
            message=f"Verification code: {otp_code} (expires in {ttl_minutes} minutes)",
        )
        return True

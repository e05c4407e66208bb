"""
SMS notifier using the Twilio REST API.

This module provides an implementation of the Notifier interface that sends
text messages through Twilio's Messages endpoint with the shared aiohttp
session. Phone numbers are 10 digit US numbers; the country code is added
here.
"""

import base64
import logging

import aiohttp

from uptime_monitor.contracts import Notifier
from uptime_monitor.domain import IOResult

# Module logger
logger = logging.getLogger(__name__)

TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"
MAX_MESSAGE_LENGTH = 1600
PHONE_LENGTH = 10
COUNTRY_CODE = "+1"


class TwilioNotifier(Notifier):
    """
    Sends alerts as SMS through Twilio.

    Any non-2xx answer from Twilio is reported as a failed send.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        account_sid: str,
        auth_token: str,
        from_phone: str,
        timeout: int = 10,
    ) -> None:
        """
        Args:
            session: An active aiohttp.ClientSession to be used for requests.
            account_sid: The Twilio account SID.
            auth_token: The Twilio auth token.
            from_phone: The Twilio number messages are sent from.
            timeout: Timeout in seconds of one API call.
        """
        self._session: aiohttp.ClientSession = session
        self._account_sid: str = account_sid
        credentials = base64.b64encode(f"{account_sid}:{auth_token}".encode("utf-8")).decode("ascii")
        self._headers: dict = {"Authorization": f"Basic {credentials}"}
        self._from_phone: str = from_phone
        self._timeout: aiohttp.ClientTimeout = aiohttp.ClientTimeout(total=timeout)

    @property
    def messages_url(self) -> str:
        return f"{TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"

    async def send(self, phone: str, message: str) -> IOResult:
        """
        Sends one SMS.

        Args:
            phone: The 10 digit phone number of the recipient.
            message: The text, at most 1600 characters.

        Returns:
            IOResult: Empty on success, carrying the error otherwise.
        """
        phone = phone.strip() if isinstance(phone, str) else ""
        message = message.strip() if isinstance(message, str) else ""
        if len(phone) != PHONE_LENGTH:
            return IOResult(error=ValueError(f"Phone number must have {PHONE_LENGTH} digits"))
        if not message or len(message) > MAX_MESSAGE_LENGTH:
            return IOResult(
                error=ValueError(f"Message must have between 1 and {MAX_MESSAGE_LENGTH} characters")
            )

        payload = {
            "From": self._from_phone,
            "To": f"{COUNTRY_CODE}{phone}",
            "Body": message,
        }
        try:
            async with self._session.post(
                self.messages_url,
                data=payload,
                headers=self._headers,
                timeout=self._timeout,
            ) as response:
                response.raise_for_status()
            logger.debug(f"SMS sent to {phone}")
            return IOResult()
        except Exception as e:
            logger.debug(f"Twilio refused or failed to send the SMS to {phone}: {e}")
            return IOResult(error=e)

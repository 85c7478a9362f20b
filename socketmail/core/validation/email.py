"""Email validation utilities."""

from email_validator import EmailNotValidError, validate_email

from socketmail.core.models.mail import MailConfiguration
from socketmail.utils.errors import InvalidEmailAddressError, MissingRequiredFieldError
from socketmail.utils.logging import get_logger

logger = get_logger(__name__)


class EmailValidator:
    """Validate addresses and the fields a send depends on"""

    @staticmethod
    def is_valid_email(email_address: str) -> bool:
        """Validate email address syntax (no DNS lookups)"""
        if not email_address or not isinstance(email_address, str):
            return False

        try:
            validate_email(email_address, check_deliverability=False)
        except EmailNotValidError:
            return False

        return True

    @staticmethod
    def validate_for_send(config: MailConfiguration) -> None:
        """Check a configuration is complete enough to be sent.

        Raises:
            MissingRequiredFieldError: If the sender or every recipient is missing
            InvalidEmailAddressError: If any address is malformed
        """
        if not config.sender_address:
            raise MissingRequiredFieldError("A sender address is required")

        if not config.to:
            raise MissingRequiredFieldError("At least one recipient is required")

        addresses = {"from": [config.sender_address], "to": config.to, "cc": config.cc}
        if config.reply_to:
            addresses["reply-to"] = [config.reply_to]

        for field, values in addresses.items():
            for address in values:
                if not EmailValidator.is_valid_email(address):
                    logger.warning(f"Rejected invalid {field} address")
                    raise InvalidEmailAddressError(
                        f"Invalid {field} email address: {address}",
                        details={"field": field},
                    )

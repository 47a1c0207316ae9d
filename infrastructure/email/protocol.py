"""Outbound email contract used by the code request flow."""

from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_verification_code_email(
        self, email: str, name: Optional[str], code: str, expires_in_minutes: int
    ) -> bool:
        """Deliver *code* to *email*. Returns False on any delivery failure."""
        ...

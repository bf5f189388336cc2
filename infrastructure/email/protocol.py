"""EmailProvider protocol — services depend on this, not the concrete implementation."""

from datetime import datetime
from typing import Optional, Protocol


class EmailProvider(Protocol):
    async def send_password_reset_otp(
        self, email: str, username: Optional[str], otp_code: str, ttl_minutes: int
    ) -> bool: ...

    async def send_test_drive_confirmation(
        self,
        email: str,
        name: str,
        car_label: str,
        preferred_date: Optional[datetime],
    ) -> bool: ...

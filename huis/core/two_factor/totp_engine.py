import binascii
import calendar
import re
from datetime import datetime
from typing import Union

import pyotp
from pyotp.utils import strings_equal

from huis.core.two_factor.constants import CODE_DIGITS, TIME_STEP
from huis.core.two_factor.domains import TotpValidation
from huis.core.two_factor.exceptions import InvalidSecret

Moment = Union[int, float, datetime]

_CODE_PATTERN = re.compile(rf'^[0-9]{{{CODE_DIGITS}}}\Z')


def to_timestamp(for_time: Moment) -> int:
    """
    Naive datetimes are read as UTC
    """
    if isinstance(for_time, datetime):
        if for_time.tzinfo is None:
            return calendar.timegm(for_time.utctimetuple())
        return int(for_time.timestamp())
    return int(for_time)


class TotpEngine:
    """
    RFC 6238 codes: HMAC-SHA1 over the 30 second counter, six digits.
    Stateless, replay tracking belongs to the caller.
    """

    def __init__(self, digits: int = CODE_DIGITS, interval: int = TIME_STEP):
        self.digits = digits
        self.interval = interval

    def _totp(self, secret: str) -> pyotp.TOTP:
        if not secret:
            raise InvalidSecret()
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        try:
            totp.byte_secret()
        except (binascii.Error, ValueError):
            raise InvalidSecret()
        return totp

    def time_step(self, for_time: Moment) -> int:
        return to_timestamp(for_time) // self.interval

    def current_code(self, secret: str, for_time: Moment) -> str:
        return self._totp(secret).generate_otp(self.time_step(for_time))

    def validate(self, secret: str, submitted_code: str, for_time: Moment, window: int = 1) -> TotpValidation:
        if window < 0:
            raise ValueError(f'window must be >= 0: {window}')

        totp = self._totp(secret)
        if not isinstance(submitted_code, str) or not _CODE_PATTERN.match(submitted_code):
            return TotpValidation(verified=False)

        base_step = self.time_step(for_time)
        matched_offset = None
        # Every offset is compared so timing does not reveal which step matched
        for offset in range(-window, window + 1):
            candidate = totp.generate_otp(base_step + offset)
            if strings_equal(candidate, submitted_code) and matched_offset is None:
                matched_offset = offset

        if matched_offset is None:
            return TotpValidation(verified=False)
        return TotpValidation(verified=True, drift=matched_offset, time_step=base_step + matched_offset)

from fastapi import status

from huis.common.exceptions import InternalException


class TwoFactorException(InternalException): ...


class InvalidCode(TwoFactorException):
    """
    Submitted code did not match. Expected outcome, never a fault.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Invalid verification code.'
    default_code = 'invalid_code'


class NotSetUp(TwoFactorException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Two factor authentication is not set up.'
    default_code = 'not_set_up'


class PolicyViolation(TwoFactorException):
    """
    Privileged roles may not turn two factor authentication off
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'Two factor authentication is required for this role.'
    default_code = 'policy_violation'


class RngUnavailable(TwoFactorException):
    default_detail = 'Secure randomness unavailable.'
    default_code = 'rng_unavailable'


class TwoFactorStoreUnavailable(TwoFactorException):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Two factor storage unavailable.'
    default_code = 'store_unavailable'


class InvalidSecret(TwoFactorException):
    """
    Programmer error, a secret must be valid base32
    """

    default_detail = 'Shared secret is missing or not valid base32.'
    default_code = 'invalid_secret'

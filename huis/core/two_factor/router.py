from typing import List

from fastapi import APIRouter, Depends, Request, status

from huis.common.exceptions import APIException
from huis.common.request import get_origin_context
from huis.core.authentication import AuthenticatedUser, authenticate_user
from huis.core.two_factor.constants import TwoFactorActionEnum
from huis.core.two_factor.domains import (
    AttemptLogEntry,
    BackupCodeResponse,
    CodePayload,
    DisableResponse,
    SetupResponse,
    TwoFactorStatus,
    VerifyResponse,
)
from huis.core.two_factor.exceptions import (
    InvalidCode,
    NotSetUp,
    PolicyViolation,
    RngUnavailable,
    TwoFactorStoreUnavailable,
)
from huis.core.two_factor.service import TwoFactorService

router = APIRouter()


def _to_api_exception(exc: Exception) -> APIException:
    if isinstance(exc, InvalidCode):
        return APIException(code=status.HTTP_400_BAD_REQUEST, message=exc.message, error_type='INVALID_CODE')
    if isinstance(exc, NotSetUp):
        return APIException(code=status.HTTP_400_BAD_REQUEST, message=exc.message, error_type='NOT_SET_UP')
    if isinstance(exc, PolicyViolation):
        return APIException(code=status.HTTP_403_FORBIDDEN, message=exc.message, error_type='POLICY_VIOLATION')
    if isinstance(exc, RngUnavailable):
        return APIException(
            code=status.HTTP_500_INTERNAL_SERVER_ERROR, message=exc.message, error_type='RNG_UNAVAILABLE'
        )
    return APIException(
        code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message=TwoFactorStoreUnavailable.default_detail,
        error_type='STORE_UNAVAILABLE',
    )


@router.post('/setup', status_code=status.HTTP_201_CREATED)
def setup_two_factor(
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> SetupResponse:
    """
    Start (or restart) enrollment. The secret and backup codes are only ever shown here.
    """
    try:
        return service.setup(user_id=user.id, account_label=user.account_label)
    except (RngUnavailable, TwoFactorStoreUnavailable) as e:
        raise _to_api_exception(e)


@router.post('/verify')
def verify_two_factor(
    payload: CodePayload,
    request: Request,
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> VerifyResponse:
    try:
        return service.verify(
            user_id=user.id,
            code=payload.code,
            origin_context=get_origin_context(request, action=TwoFactorActionEnum.VERIFY.value),
        )
    except (InvalidCode, NotSetUp, TwoFactorStoreUnavailable) as e:
        raise _to_api_exception(e)


@router.post('/disable')
def disable_two_factor(
    payload: CodePayload,
    request: Request,
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> DisableResponse:
    try:
        return service.disable(
            user_id=user.id,
            code=payload.code,
            origin_context=get_origin_context(request, action=TwoFactorActionEnum.DISABLE.value),
        )
    except (InvalidCode, NotSetUp, PolicyViolation, TwoFactorStoreUnavailable) as e:
        raise _to_api_exception(e)


@router.post('/backup-code')
def use_backup_code(
    payload: CodePayload,
    request: Request,
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> BackupCodeResponse:
    try:
        return service.use_backup_code(
            user_id=user.id,
            code=payload.code,
            origin_context=get_origin_context(request, action=TwoFactorActionEnum.USE_BACKUP.value),
        )
    except (InvalidCode, NotSetUp, TwoFactorStoreUnavailable) as e:
        raise _to_api_exception(e)


@router.get('/status')
def get_two_factor_status(
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> TwoFactorStatus:
    try:
        return service.get_status(user_id=user.id)
    except TwoFactorStoreUnavailable as e:
        raise _to_api_exception(e)


@router.get('/attempts')
def list_two_factor_attempts(
    user: AuthenticatedUser = Depends(authenticate_user),
    service: TwoFactorService = Depends(TwoFactorService.factory),
) -> List[AttemptLogEntry]:
    try:
        attempts = service.list_attempts(user_id=user.id)
    except TwoFactorStoreUnavailable as e:
        raise _to_api_exception(e)
    return [
        AttemptLogEntry(method=attempt.method, success=attempt.success, attempted_at=attempt.attempted_at)
        for attempt in attempts
    ]

from fastapi import APIRouter, Response
from sqlalchemy import text
from starlette import status

router = APIRouter()


@router.get('/api')
def status_get(response: Response) -> str:
    """
    Fast check to ensure API is running.
    Used by the load balancer and deploy scripts, do not change the path.
    """
    response.headers['Content-Type'] = 'text/html; charset=utf-8'
    return '🟢 Huis API is up'


@router.get('/database')
def database_health_check(response: Response) -> str:
    from sqlalchemy.exc import SQLAlchemyError

    from huis.network.database.session import db

    try:
        db.session.execute(text('SELECT 1'))
        message = '✅ DB is happy'
        response.status_code = status.HTTP_200_OK
    except SQLAlchemyError as e:
        message = f'❌ DB is sad: {e.__class__.__name__}'
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    response.headers['Content-Type'] = 'text/html; charset=utf-8'
    return message

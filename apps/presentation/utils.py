from rest_framework.response import Response
from rest_framework import status
import logging

logger = logging.getLogger('apps')


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict = None) -> Response:
    response_data = {
        'error': message,
        'status': status_code
    }

    if details:
        response_data['details'] = details

    if status_code >= 500:
        logger.error(f'Error response: {message}')
    else:
        logger.warning(f'Error response: {status_code} {message}')

    return Response(response_data, status=status_code)


def client_ip(request) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')

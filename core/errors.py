from django.core.exceptions import PermissionDenied
from django.http import Http404
from rest_framework import status as http
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler

# Codes pour lesquels un nouvel essai a un sens (limite de débit, indisponibilité passagère)
RETRYABLE_STATUSES = {http.HTTP_429_TOO_MANY_REQUESTS, http.HTTP_503_SERVICE_UNAVAILABLE}


def _envelope(code: str, message: str, status: int, details=None) -> dict:
    body = {"code": code, "message": message, "retryable": status in RETRYABLE_STATUSES}
    if details:
        body["details"] = details
    return {"error": body}


def error_response(code: str, message: str, status: int, details: dict | None = None) -> Response:
    """
    Enveloppe d'erreur commune: {"error": {"code", "message", "retryable", "details"?}}
    """
    return Response(_envelope(code, message, status, details), status=status)


def api_exception_handler(exc, context):
    """
    EXCEPTION_HANDLER DRF: mêmes réponses que le handler par défaut (statut, en-têtes
    comme Retry-After), corps ramené à l'enveloppe commune.
    """
    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, ValidationError):
        response.data = _envelope("VALIDATION_ERROR", "Invalid input", response.status_code, response.data)
        return response

    if isinstance(exc, Http404):
        code = "NOT_FOUND"
    elif isinstance(exc, PermissionDenied):
        code = "PERMISSION_DENIED"
    else:
        code = str(getattr(exc, "default_code", "error")).upper()
    data = response.data
    message = str(data.get("detail", "")) if isinstance(data, dict) else str(data)
    details = {"wait": exc.wait} if getattr(exc, "wait", None) is not None else None
    response.data = _envelope(code, message, response.status_code, details)
    return response

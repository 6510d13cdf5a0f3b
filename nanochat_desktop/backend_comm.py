import logging
from http import HTTPStatus

import requests

logger = logging.getLogger("BackendComm")

VALIDATION_ENDPOINT = "/api/db/user-settings"


class ValidationError(Exception):
    """Base class for connection validation failures."""
    kind = "unknown"


class BackendConnectionError(ValidationError):
    kind = "connection"


class AuthError(ValidationError):
    kind = "auth"


class EndpointNotFoundError(ValidationError):
    kind = "not_found"


class ServerError(ValidationError):
    kind = "server"

    def __init__(self, status_code, reason):
        super().__init__(f"API returned error: {status_code} - {reason}")
        self.status_code = status_code
        self.reason = reason


def build_endpoint_url(server_url):
    # Ensure trailing slash is handled correctly
    safe_base_url = server_url.rstrip('/')
    return f"{safe_base_url}{VALIDATION_ENDPOINT}"


def canonical_reason(status_code):
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return "Unknown"


def validate_connection(server_url, api_key, timeout=None):
    """
    Checks that server_url/api_key reach an authenticated nanochat server by
    reading the user settings endpoint.
    Returns True on a 2xx response, raises a ValidationError subclass otherwise.
    Only the status code is looked at; the body is ignored.
    """
    url = build_endpoint_url(server_url)
    logger.info(f"Validating connection against: {url}")

    headers = {
        'Authorization': f'Bearer {api_key}',
        'Content-Type': 'application/json',
    }

    try:
        response = requests.get(url, timeout=timeout, headers=headers)
    except (requests.exceptions.RequestException, ValueError) as e:
        # Covers connection refused, DNS, timeouts, TLS, malformed URLs and
        # header values http.client cannot encode (UnicodeEncodeError)
        logger.error(f"Connection error validating {url}: {e}")
        raise BackendConnectionError(f"Connection failed: {e}") from e

    status = response.status_code
    if 200 <= status < 300:
        logger.info(f"Connection to {url} validated ({status}).")
        return True
    if status == 401:
        logger.warning(f"Validation rejected by {url}: unauthorized (401).")
        raise AuthError("Invalid API key or unauthorized")
    if status == 404:
        logger.warning(f"Validation endpoint not found at {url} (404).")
        raise EndpointNotFoundError("API endpoint not found. Please check your server URL")

    reason = canonical_reason(status)
    logger.error(f"HTTP error validating {url}: {status} {reason}")
    raise ServerError(status, reason)

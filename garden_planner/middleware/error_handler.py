"""
Global error handling middleware.
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable

from garden_planner.infrastructure.catalog_client import CatalogError


logger = logging.getLogger(__name__)


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Turns failures that escape the routers into JSON error responses:
    - CatalogError: the catalog could not be loaded (its own status code)
    - ValidationError: garden, layout or catalog data built during the
      request broke a model constraint (422)
    - ValueError: a garden request the planner cannot work with (400)
    - anything else: 500
    """

    async def dispatch(self, request: Request, call_next: Callable):
        """
        Process the request and handle any exceptions.

        Args:
            request: The incoming request
            call_next: The next middleware or route handler

        Returns:
            Response object
        """
        try:
            return await call_next(request)

        except CatalogError as e:
            logger.error(
                f"Catalog error ({e.status_code}) on {request.method} {request.url.path}: {e.message}"
            )
            return JSONResponse(
                status_code=e.status_code,
                content={
                    "error": "Catalog error",
                    "detail": e.message,
                }
            )

        except ValidationError as e:
            # Checked before ValueError, which it subclasses
            logger.warning(
                f"Invalid {e.title} data on {request.url.path}: {e.error_count()} error(s)"
            )
            return JSONResponse(
                status_code=422,
                content={
                    "error": "Invalid garden data",
                    "detail": f"{e.title}: {e.error_count()} validation error(s)",
                }
            )

        except ValueError as e:
            logger.warning(f"Rejected garden request on {request.url.path}: {str(e)}")
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={
                    "error": "Invalid garden request",
                    "detail": str(e),
                }
            )

        except Exception as e:
            logger.exception(
                f"Unhandled {type(e).__name__} on {request.method} {request.url.path}: {str(e)}"
            )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={
                    "error": "Internal server error",
                    "detail": "The garden layout service hit an unexpected error",
                }
            )

"""Error handling helpers for the HTTP layer."""
from typing import Any, Dict, Tuple
import logging

from cart_protection.errors import CartProtectionError

logger = logging.getLogger(__name__)


class ErrorHandler:
    def handle_exception(self, exc: Exception, context: Dict[str, Any] = None) -> Tuple[int, Dict[str, Any]]:
        """Map an exception to (status_code, response body). Bodies always carry success: false."""
        if isinstance(exc, CartProtectionError):
            logger.warning("%s (%s): %s context=%s", type(exc).__name__, exc.status_code, exc.message, context or {})
            return exc.status_code, exc.to_dict()

        logger.error("Unhandled exception in cart protection request: %s", exc, exc_info=exc)
        return 500, {
            "success": False,
            "error": "Internal server error",
            "error_type": "internal_error",
            "metadata": {"context": context or {}},
        }

"""Common response builders for DRY responses."""

from datetime import datetime, timezone
from typing import Any, Dict


def success_response(
    data: Any = None,
    message: str = "Success",
    **extras,
) -> Dict[str, Any]:
    """Build a standard success response."""
    response = {
        "status": "success",
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    if data is not None:
        response["data"] = data
    response.update(extras)
    return response

"""ClearCare+ - care instructions and compliance tracking service."""

import uvicorn

from clearcare.config import settings
from clearcare.main import app  # noqa: F401


if __name__ == "__main__":
    uvicorn.run(
        "clearcare.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )

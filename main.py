import os

import uvicorn

from framevault.core.app import app  # noqa: F401
from framevault.core.config import settings

if __name__ == "__main__":
    PORT = os.getenv("PORT", settings.PORT)
    reload = settings.APP_ENV == "development"
    uvicorn.run("framevault.core.app:app", host="0.0.0.0", port=int(PORT), reload=reload)

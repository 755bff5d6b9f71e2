"""
asgi.py -- Process entry point for TaskHub.

api/main.py owns the application; this file only runs it.

Run with:  python asgi.py
           uvicorn asgi:app --reload
"""

import uvicorn

from api.main import app
from core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)

"""
ASGI entry point for the verification service.

    uvicorn asgi:app --host 0.0.0.0 --port 8000 --proxy-headers

Settings come from the environment (see config.py); MONGODB_URI is required.
"""

from app import create_app

app = create_app()

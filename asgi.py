"""
asgi.py -- ASGI entry point for SecurePay Gate.

Settings are read from the environment (and .env) exactly once, here, when
the module is imported by the server.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app

app = create_app()

"""
Serverless entrypoint.

The platform routes every request to this module: ASGI runtimes serve `app`
directly, Lambda-style runtimes call `handler`.
"""

import logging

from mangum import Mangum

from backend.serverless import create_serverless_app
from backend.settings import get_settings

# No uvicorn logging config in a function runtime.
logging.basicConfig(level=get_settings().log_level.upper())

app = create_serverless_app()

handler = Mangum(app, lifespan="off")

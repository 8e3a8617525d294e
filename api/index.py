# Serverless entry point.
# ASGI hosts (e.g. Vercel) pick up ``app``; Lambda-style hosts call ``handler``.
from mangum import Mangum

from app.main import app

handler = Mangum(app, lifespan="off")

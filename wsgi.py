"""
WSGI entry point for deployment
"""
from dabil.main import app

# WSGI application entry point
application = app

# For local testing
if __name__ == "__main__":
    import uvicorn
    from dabil.config import settings
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info" if not settings.DEBUG else "debug"
    )

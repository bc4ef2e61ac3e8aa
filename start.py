#!/usr/bin/env python3
"""
Start script - serves the options API with uvicorn

Host and port come from APP_HOST / APP_PORT; a PORT environment variable
(set by most hosting platforms) takes precedence over APP_PORT.
"""
import os

from core.config import load_settings, validate_configuration


def main():
    settings = load_settings()
    validate_configuration(settings)
    port = int(os.getenv("PORT", settings.app_port))

    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=port,
        log_level=settings.log_level.lower(),
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()

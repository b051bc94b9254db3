"""ASGI entrypoint for the payment relay

    uvicorn api:app --host 0.0.0.0 --port 3000
"""

import uvicorn
from config import ApplicationConfig
from src.api.app import create_app

app = create_app(ApplicationConfig)

if __name__ == "__main__":
    # One process only: payment and balance locks live in memory
    uvicorn.run(
        "api:app",
        host=ApplicationConfig.API_HOST,
        port=ApplicationConfig.API_PORT,
        workers=1,
        log_level=ApplicationConfig.LOG_LEVEL.lower(),
    )

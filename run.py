import os

import uvicorn

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 3000))
    # Each worker opens its own eBay connection pool in the app lifespan
    workers = int(os.environ.get("WEB_CONCURRENCY", 1))
    uvicorn.run(
        "compatibility_api.main:app",
        host="0.0.0.0",
        port=port,
        workers=workers,
    )

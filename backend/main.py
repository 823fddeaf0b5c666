import os
import sys

import uvicorn

if __name__ == "__main__":
    # reload only during development
    is_dev = os.getenv("FLEET_ENV", "development") == "development" and not getattr(sys, 'frozen', False)

    uvicorn.run(
        "fleet.main:app",
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        reload=is_dev,
        log_level="info"
    )

"""Start the API with uvicorn. Host and port come from HOST and PORT."""
import os

import uvicorn

if __name__ == "__main__":
    uvicorn.run(
        "events_api.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3000")),
        reload=False,
    )

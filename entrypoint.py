"""Run the cache API under uvicorn; BACKEND_PORT picks the port (default 8001)."""
import os

import uvicorn

from fincache.api.main import app


def main() -> None:
    uvicorn.run(app, host="127.0.0.1", port=int(os.environ.get("BACKEND_PORT", "8001")))


if __name__ == "__main__":
    main()

"""Server entry point for the chat wallet API."""

import os

import uvicorn


def main():
    """Run the FastAPI server."""
    uvicorn.run(
        "chatwallet.api:app",
        host=os.environ.get("CHATWALLET_HOST", "0.0.0.0"),
        port=int(os.environ.get("CHATWALLET_PORT", "8080")),
        log_level="info",
    )


if __name__ == "__main__":
    main()

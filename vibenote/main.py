"""
VibeNote - learning assistant API

Entry point for the FastAPI application.
Logging is configured by create_app().
"""
from vibenote.core import create_app

app = create_app()


def run() -> None:
    """Console entry point."""
    import uvicorn
    uvicorn.run("vibenote.main:app", host="0.0.0.0", port=8080)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "vibenote.main:app",
        host="0.0.0.0",
        port=8080,
        reload=True
    )

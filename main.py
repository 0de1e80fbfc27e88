import uvicorn

from promptbridge.core.config import settings


def main() -> None:
    """
    Run the PromptBridge API with uvicorn on HOST:PORT, reloading on change when DEBUG is set.

    Equivalent to:
      uvicorn promptbridge.main:app --host 0.0.0.0 --port 8000
    """

    uvicorn.run(
        "promptbridge.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()

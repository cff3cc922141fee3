"""Profile API command-line entry point: `python -m profile_api`."""

if __name__ == "__main__":
    import uvicorn

    from profile_api.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "profile_api.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )

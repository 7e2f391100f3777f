if __name__ == "__main__":
    import logging
    import os
    import uvicorn

    logging.basicConfig(
        level=os.environ.get("VOICELAB_LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    reload_enabled = os.environ.get("VOICELAB_RELOAD") == "1"

    uvicorn.run(
        "app.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=reload_enabled,
    )

"""
Local development server for the Rebar Cutting Planner.

    python main.py            # or: cutting-planner

Host, port, reload and log level come from settings (.env).
"""
import uvicorn

import settings


def run():
    print(f"🔧 Rebar Cutting Planner on http://localhost:{settings.PORT} (docs at /api/docs)")
    uvicorn.run(
        "api.index:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.RELOAD,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    run()

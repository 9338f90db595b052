from __future__ import annotations
import uvicorn
from storybot.config import Settings, load_settings
from storybot.server.app import create_app

def run_server(settings: Settings | None = None) -> None:
    settings = settings or load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_level=settings.log_level.lower())

if __name__ == "__main__":
    # python -m storybot exposes the full CLI
    from storybot.cli import main
    main()

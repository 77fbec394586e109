"""Main entry point for Team Chat."""

import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from teamchat.logging_config import setup_logging


def main():
    """Run the application."""
    project_root = Path(__file__).resolve().parent.parent
    load_dotenv(project_root / ".env")
    setup_logging()

    # Imported after .env is loaded so module-level config sees it
    from sim import Sim
    from teamchat.api import create_fastapi_app
    from teamchat.api.routes import control

    # Get configuration from environment
    api_host = os.getenv("API_HOST", "localhost")
    api_port = int(os.getenv("API_PORT", "8000"))
    api_url = f"http://{api_host}:{api_port}"

    # Set SIM instance for control router
    control.set_sim_instance(Sim(api_url=api_url))

    # Create FastAPI app
    app = create_fastapi_app()

    # Run with uvicorn
    uvicorn.run(
        app,
        host=api_host,
        port=api_port,
        log_level="info",
    )


if __name__ == "__main__":
    main()

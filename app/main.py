"""Main module entrypoint for local runtime execution.

This module validates startup configuration and launches the FastAPI service.
"""

import argparse

import uvicorn

from app.bootstrap import bootstrap_create_analyzer, bootstrap_create_application
from app.config import config_configure_logging, config_load_settings


def main() -> None:
    """Run selected runtime command with validated startup configuration.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
    """

    argument_parser = argparse.ArgumentParser(description="Analysis Hub runtime entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=("api", "analyzer-health"),
        help="Runtime command: `api` starts server, `analyzer-health` probes the external analyzer",
        type=str,
    )
    parsed_arguments = argument_parser.parse_args()

    settings = config_load_settings()
    config_configure_logging(settings.log_level)

    if parsed_arguments.command == "analyzer-health":
        analyzer = bootstrap_create_analyzer(settings)
        try:
            is_healthy = analyzer.adapter_health()
        finally:
            analyzer.adapter_close()
        print("ANALYZER:", "up" if is_healthy else "down")
        if not is_healthy:
            raise SystemExit(1)
        return

    application = bootstrap_create_application(settings)
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


if __name__ == "__main__":
    main()

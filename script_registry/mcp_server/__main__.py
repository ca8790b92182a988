import argparse
import logging
import sys
import asyncio
from script_registry.mcp_server.server import server
from script_registry.core.config import load_config


def main():
    parser = argparse.ArgumentParser(
        description="Script Registry MCP Server - Search and completion over a parsed API declaration file",
        epilog="Example: python -m script_registry.mcp_server --config registry.config.yaml"
    )
    parser.add_argument(
        "--config",
        help="Path to configuration YAML file (default: registry.config.yaml)"
    )
    parser.add_argument(
        "--source-file",
        help="Declaration file to serve (overrides config)"
    )

    args = parser.parse_args()

    # Config file first, then any CLI value that was given
    cli_args = {"source_file": args.source_file}
    config = load_config(config_path=args.config, cli_args=cli_args)

    level = getattr(logging, str(config.log_level).upper(), logging.INFO)
    logging.basicConfig(level=level, stream=sys.stderr)

    if not config.source_file:
        logging.error("No source_file configured; set it in the config file or pass --source-file")
        sys.exit(1)

    server.config = config

    logging.info(f"Server starting with source file: {config.source_file}")
    logging.info("Server running on stdio")
    try:
        asyncio.run(server.run_stdio_async())
    except KeyboardInterrupt:
        logging.info("Server stopped")


if __name__ == "__main__":
    main()

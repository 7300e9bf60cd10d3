"""
Run the to-do MCP server.

    python -m todo_app                    # Flask: /mcp + /api/todos
    python -m todo_app --transport stdio  # FastMCP over stdio
"""

import argparse
import logging

from .config import Config, configure_logging
from .flask_server import build_commands, build_widget, create_app
from .mcp_server import create_mcp_server

logger = logging.getLogger(__name__)


def main(argv=None):
    parser = argparse.ArgumentParser(description="To-do list MCP server")
    parser.add_argument("--transport", choices=["http", "stdio"], default="http")
    args = parser.parse_args(argv)

    configure_logging(Config.LOG_LEVEL)
    commands = build_commands(Config)
    widget = build_widget(Config)

    if Config.BASE_URL:
        logger.info("BASE_URL: %s", Config.BASE_URL)
    else:
        logger.warning(
            "BASE_URL not set! Set it to your tunnel URL in .env for ChatGPT testing."
        )

    if args.transport == "stdio":
        logger.info("Starting MCP server on stdio...")
        create_mcp_server(commands, widget).run(transport="stdio")
        return

    app = create_app(commands, widget, Config)
    logger.info("MCP endpoint: http://%s:%s/mcp", Config.HOST, Config.PORT)
    # One request at a time: the store has no locking.
    app.run(host=Config.HOST, port=Config.PORT, debug=Config.DEBUG,
            use_reloader=False, threaded=False)


if __name__ == "__main__":
    main()

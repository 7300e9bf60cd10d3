"""
Flask app exposing the to-do list over two surfaces backed by one store:

- POST /mcp           MCP JSON-RPC endpoint (other methods answer 405)
- /api/todos...       plain REST API for direct access
"""

import logging

import mcp.types as types
from flask import Flask, jsonify, request

from .config import Config
from .errors import NotFoundError, ValidationError
from .handlers import TodoCommands
from .jsonrpc import METHOD_NOT_ALLOWED, JsonRpcDispatcher, error_envelope
from .schemas import AddTodoParams, UpdateTodoBody, parse_params
from .store import TodoStore, seed_sample_todos
from .widget import WidgetResource

logger = logging.getLogger(__name__)


def build_commands(config=Config) -> TodoCommands:
    store = TodoStore()
    if config.SEED_SAMPLE_TODOS:
        seed_sample_todos(store)
    return TodoCommands(store)


def build_widget(config=Config) -> WidgetResource:
    return WidgetResource(
        config.WIDGET_ASSETS_DIR,
        api_base_url=config.BASE_URL,
        connect_domain=config.CONNECT_DOMAIN,
    )


def create_app(commands: TodoCommands = None, widget: WidgetResource = None,
               config=Config) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config)

    if commands is None:
        commands = build_commands(config)
    if widget is None:
        widget = build_widget(config)
    store = commands.store
    dispatcher = JsonRpcDispatcher(commands, widget)

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": "Invalid input", "details": e.details}), 400

    @app.errorhandler(NotFoundError)
    def handle_not_found(e):
        return jsonify({"error": "Todo not found"}), 404

    # ------------------------------------------------------------------ MCP

    @app.route("/mcp", methods=["POST"])
    def mcp_endpoint():
        payload = request.get_json(silent=True)
        logger.debug("Received MCP request: %s", payload)
        if payload is None:
            return jsonify(error_envelope(types.PARSE_ERROR, "Parse error")), 400
        try:
            response = dispatcher.handle(payload)
        except Exception:
            logger.error("Error handling MCP request", exc_info=True)
            return jsonify(error_envelope(types.INTERNAL_ERROR, "Internal server error")), 500
        if response is None:
            return "", 202
        return jsonify(response)

    @app.route("/mcp", methods=["GET", "PUT", "PATCH", "DELETE"])
    def mcp_method_not_allowed():
        logger.info("Received %s MCP request", request.method)
        return jsonify(error_envelope(METHOD_NOT_ALLOWED, "Method not allowed.")), 405

    # ----------------------------------------------------------------- REST

    @app.route("/api/todos", methods=["GET"])
    def list_todos():
        return jsonify([todo.to_dict() for todo in store.list()])

    @app.route("/api/todos", methods=["POST"])
    def create_todo():
        params = parse_params(AddTodoParams, request.get_json(silent=True))
        todo = store.create(params.title)
        return jsonify(todo.to_dict()), 201

    @app.route("/api/todos/<todo_id>", methods=["PUT"])
    def update_todo(todo_id):
        body = parse_params(UpdateTodoBody, request.get_json(silent=True))
        updated = store.update(todo_id, title=body.title, completed=body.completed)
        if updated is None:
            raise NotFoundError(todo_id)
        return jsonify(updated.to_dict())

    @app.route("/api/todos/<todo_id>", methods=["DELETE"])
    def delete_todo(todo_id):
        if not store.delete(todo_id):
            raise NotFoundError(todo_id)
        return jsonify({"success": True})

    @app.route("/api/todos/<todo_id>/toggle", methods=["POST"])
    def toggle_todo(todo_id):
        updated = store.toggle(todo_id)
        if updated is None:
            raise NotFoundError(todo_id)
        return jsonify(updated.to_dict())

    return app

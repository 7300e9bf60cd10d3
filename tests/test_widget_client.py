import asyncio
import json
import unittest
from unittest.mock import AsyncMock, Mock

import httpx

from todo_app.errors import TransportError, UnavailableCapability, ValidationError
from todo_app.handlers import TodoCommands
from todo_app.jsonrpc import JsonRpcDispatcher, error_envelope
from todo_app.store import TodoStore
from todo_app.widget import WidgetResource
from todo_app.widget_client import (
    HostGlobals,
    HttpHost,
    LocalHost,
    TodoWidget,
    WidgetHost,
)

STALE = {"id": "stale", "title": "Only on the client", "completed": False, "createdAt": 1}


class TodoWidgetTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = TodoStore()
        self.commands = TodoCommands(self.store)
        self.host = LocalHost(self.commands)

    def test_starts_empty(self):
        widget = TodoWidget(self.host)
        self.assertEqual(widget.todos, [])
        self.assertFalse(widget.is_loading)
        self.assertEqual(widget.globals.theme, "light")
        self.assertEqual(widget.globals.max_height, 400)

    def test_initial_state_from_tool_output(self):
        host = LocalHost(host_globals=HostGlobals(tool_output={"todos": [STALE]}))
        widget = TodoWidget(host)
        self.assertEqual([t.id for t in widget.todos], ["stale"])

    def test_widget_state_wins_over_tool_output(self):
        persisted = dict(STALE, id="persisted")
        host = LocalHost(host_globals=HostGlobals(tool_output={"todos": [STALE]},
                                                  widget_state={"todos": [persisted]}))
        self.assertEqual([t.id for t in TodoWidget(host).todos], ["persisted"])

    def test_resync_on_global_update(self):
        widget = TodoWidget(self.host)
        widget.mount()
        self.host.set_globals(tool_output={"todos": [STALE]})
        self.assertEqual([t.title for t in widget.todos], ["Only on the client"])

        widget.unmount()
        self.host.set_globals(tool_output={"todos": []})
        self.assertEqual(len(widget.todos), 1)

    async def test_add_reconciles_with_server(self):
        widget = TodoWidget(self.host)
        result = await widget.add_todo("Buy milk")

        self.assertFalse(result["isError"])
        server_todo = self.store.list()[0]
        self.assertEqual(widget.todos, [server_todo])
        self.assertEqual(self.host.read_globals().widget_state["todos"][0]["id"], server_todo.id)

    async def test_add_without_reconcile_keeps_optimistic_item(self):
        widget = TodoWidget(self.host, reconcile=False)
        await widget.add_todo("Buy milk")

        self.assertEqual(len(self.store), 1)
        self.assertEqual(len(widget.todos), 1)
        self.assertTrue(widget.todos[0].id.startswith("pending-"))

    async def test_add_rejects_invalid_title_locally(self):
        widget = TodoWidget(self.host)
        with self.assertRaises(ValidationError):
            await widget.add_todo("")
        self.assertEqual(widget.todos, [])
        self.assertEqual(len(self.store), 0)

    async def test_toggle_and_delete(self):
        todo = self.store.create("Task")
        widget = TodoWidget(self.host)
        await widget.refresh()
        self.assertEqual(widget.todos, [todo])

        await widget.toggle_todo(todo.id)
        self.assertTrue(widget.todos[0].completed)
        self.assertTrue(self.store.get(todo.id).completed)

        await widget.delete_todo(todo.id)
        self.assertEqual(widget.todos, [])
        self.assertEqual(len(self.store), 0)

    async def test_failed_toggle_reverts(self):
        host = LocalHost(self.commands, HostGlobals(tool_output={"todos": [STALE]}))
        widget = TodoWidget(host)
        result = await widget.toggle_todo("stale")

        self.assertTrue(result["isError"])
        self.assertFalse(widget.todos[0].completed)

    async def test_failed_delete_restores_item(self):
        host = LocalHost(self.commands, HostGlobals(tool_output={"todos": [STALE]}))
        widget = TodoWidget(host)
        await widget.delete_todo("stale")
        self.assertEqual([t.id for t in widget.todos], ["stale"])

    async def test_new_tool_output_replaces_persisted_mirror(self):
        widget = TodoWidget(self.host)
        widget.mount()
        await widget.add_todo("Local")
        self.assertIsNotNone(self.host.read_globals().widget_state)

        self.host.set_globals(tool_output={"todos": [dict(STALE, id="fresh")]})
        self.assertEqual([t.id for t in widget.todos], ["fresh"])

        self.host.set_globals(theme="dark")
        self.assertEqual([t.id for t in widget.todos], ["fresh"])

    def resyncing_host(self, todos):
        host = LocalHost(self.commands, HostGlobals(tool_output={"todos": [STALE]}))
        real_call = host.call_tool

        async def call_tool(name, arguments=None):
            host.set_globals(tool_output={"todos": todos})
            return await real_call(name, arguments)

        host.call_tool = call_tool
        return host

    async def test_failed_toggle_restores_item_after_resync(self):
        widget = TodoWidget(self.resyncing_host([STALE]))
        widget.mount()
        result = await widget.toggle_todo("stale")

        self.assertTrue(result["isError"])
        self.assertEqual(len(widget.todos), 1)
        self.assertFalse(widget.todos[0].completed)

    async def test_failed_delete_does_not_duplicate_after_resync(self):
        widget = TodoWidget(self.resyncing_host([STALE]))
        widget.mount()
        await widget.delete_todo("stale")
        self.assertEqual([t.id for t in widget.todos], ["stale"])

    async def test_save_state(self):
        self.store.create("Server")
        host = LocalHost(self.commands, HostGlobals(tool_output={"todos": [STALE]}))
        widget = TodoWidget(host)
        result = await widget.save_state()
        self.assertEqual(result["content"][0]["text"], "Saved 1 todo.")
        self.assertEqual([t.title for t in widget.todos], ["Server"])

    async def test_missing_call_tool_capability(self):
        widget = TodoWidget(WidgetHost())
        with self.assertRaises(UnavailableCapability):
            await widget.add_todo("Buy milk")
        self.assertEqual(widget.todos, [])
        self.assertFalse(widget.is_loading)

    async def test_is_loading_while_call_pending(self):
        release = asyncio.Event()
        host = LocalHost(self.commands)
        real_call = host.call_tool

        async def slow_call(name, arguments=None):
            await release.wait()
            return await real_call(name, arguments)

        host.call_tool = slow_call
        widget = TodoWidget(host)
        task = asyncio.create_task(widget.add_todo("Slow"))
        await asyncio.sleep(0)
        self.assertTrue(widget.is_loading)

        release.set()
        await task
        self.assertFalse(widget.is_loading)

    async def test_host_capabilities(self):
        host = LocalHost()
        self.assertFalse(host.supports("call_tool"))
        await host.send_follow_up_message("What is next?")
        self.assertEqual(host.follow_up_messages, ["What is next?"])

        listener = Mock()
        unsubscribe = host.subscribe(listener)
        self.assertEqual(await host.request_display_mode("fullscreen"), {"mode": "fullscreen"})
        listener.assert_called_once()
        unsubscribe()

        host.open_external("https://example.test")
        self.assertEqual(host.opened_links, ["https://example.test"])
        with self.assertRaises(ValueError):
            await host.request_display_mode("floating")

    async def test_base_host_has_no_capabilities(self):
        host = WidgetHost()
        with self.assertRaises(UnavailableCapability):
            await host.set_widget_state({})
        with self.assertRaises(UnavailableCapability):
            await host.send_follow_up_message("hi")
        with self.assertRaises(UnavailableCapability):
            host.open_external("https://example.test")


class HttpHostTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.store = TodoStore()
        self.dispatcher = JsonRpcDispatcher(TodoCommands(self.store), WidgetResource("unused"))

        def handle(request):
            return httpx.Response(200, json=self.dispatcher.handle(json.loads(request.content)))

        self.transport = httpx.MockTransport(handle)

    async def test_call_tool_through_endpoint(self):
        host = HttpHost("https://todo.example/", transport=self.transport)
        widget = TodoWidget(host)
        await widget.add_todo("Over HTTP")
        self.assertEqual(widget.todos, self.store.list())
        self.assertEqual(widget.todos[0].title, "Over HTTP")

    async def test_protocol_error_raises_transport_error(self):
        host = HttpHost("https://todo.example", transport=self.transport)
        with self.assertRaises(TransportError) as cm:
            await host.call_tool("todos.add_todo", {"title": ""})
        self.assertEqual(cm.exception.code, -32602)

    async def test_method_not_allowed_envelope(self):
        transport = httpx.MockTransport(
            lambda request: httpx.Response(405, json=error_envelope(-32000, "Method not allowed."))
        )
        host = HttpHost("https://todo.example", transport=transport)
        with self.assertRaises(TransportError) as cm:
            await host.call_tool("todos.refresh_todos")
        self.assertEqual(cm.exception.code, -32000)

    async def test_without_base_url_calls_are_unavailable(self):
        host = HttpHost(None)
        self.assertFalse(host.supports("call_tool"))
        widget = TodoWidget(host, reconcile=False)
        with self.assertRaises(UnavailableCapability):
            await widget.refresh()

    async def test_state_persistence_is_skipped_when_unsupported(self):
        host = HttpHost("https://todo.example", transport=self.transport)
        host.set_widget_state = AsyncMock()
        await TodoWidget(host).add_todo("No persistence")
        host.set_widget_state.assert_not_called()


if __name__ == "__main__":
    unittest.main()

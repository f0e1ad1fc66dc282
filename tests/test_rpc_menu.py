"""Tests for the RPC JSON submenu."""

import json
import tempfile

import pytest
from conftest import FakePrompt, FakeRemote, FakeTerminal

from kitty_workspace_menu.config_loader import ColorTheme
from kitty_workspace_menu.errors import Error, ErrorType, Result
from kitty_workspace_menu.prompt import BACK_CHOICE, CANCEL
from kitty_workspace_menu.rpc_menu import (
    JACK_SYSTEM_METHODS,
    RPC_CATEGORIES,
    RpcMenu,
    build_curl_command,
    build_request_body,
    format_response,
)

WIFI_METHODS = [BACK_CHOICE, "WiFi.GetStatus", "WiFi.GetConfig", "WiFi.SetConfig"]


@pytest.fixture(autouse=True)
def response_tmpdir(tmp_path, monkeypatch):
    # Response files are normally removed by the window that prints them
    monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))


def _menu(answers, remote=None, terminal=None):
    prompt = FakePrompt(answers)
    remote = remote or FakeRemote()
    terminal = terminal or FakeTerminal()
    menu = RpcMenu(prompt, terminal, remote, relay_host="barndo", theme=ColorTheme(background="#000"))
    return menu, prompt, remote, terminal


class TestCatalog:
    def test_ten_categories(self):
        assert len(RPC_CATEGORIES) == 10
        assert RPC_CATEGORIES[0].label == "Core System Methods"
        assert list(RPC_CATEGORIES[0].device_types) == ["Shelly", "JACK"]
        assert all(not c.device_types for c in RPC_CATEGORIES[1:])


class TestRequest:
    def test_body_is_compact(self):
        assert build_request_body("WiFi.GetStatus") == '{"id":1,"method":"WiFi.GetStatus"}'

    def test_curl_command(self):
        command = build_curl_command("10.0.0.5", build_request_body("WiFi.GetStatus"))
        assert command == (
            "curl -s -X POST http://10.0.0.5/rpc -H 'Content-Type: application/json' "
            "-d '{\"id\":1,\"method\":\"WiFi.GetStatus\"}'"
        )

    def test_format_response(self):
        assert format_response('{"a":1}') == json.dumps({"a": 1}, indent=4)
        assert format_response("curl: (7) Failed to connect") == "curl: (7) Failed to connect"


class TestRpcMenu:
    def test_call_returns_to_method_list(self):
        menu, prompt, remote, terminal = _menu(
            ["WiFi Methods", "WiFi.GetStatus", "10.0.0.5", BACK_CHOICE, BACK_CHOICE]
        )
        menu.run()

        host, command = remote.calls[0]
        assert host == "barndo"
        assert '{"id":1,"method":"WiFi.GetStatus"}' in command
        assert "http://10.0.0.5/rpc" in command

        # category, methods, methods again after the call, then categories
        assert prompt.menus[1] == WIFI_METHODS
        assert prompt.menus[2] == WIFI_METHODS
        assert prompt.menus[3] == prompt.menus[0]

        call = terminal.calls[0]
        assert call["title"] == "RPC: WiFi.GetStatus @ 10.0.0.5"
        assert call["window_type"] == "os-window"
        assert call["theme"].background == "#000"
        assert "Press Enter to close..." in call["command"]
        assert "Executed: WiFi.GetStatus" in prompt.infos

    def test_same_method_to_second_ip(self):
        menu, _, remote, _ = _menu([
            "WiFi Methods", "WiFi.GetStatus", "10.0.0.5",
            "WiFi.GetStatus", "10.0.0.6", BACK_CHOICE, BACK_CHOICE,
        ])
        menu.run()
        assert [("http://10.0.0.5/rpc" in c, "http://10.0.0.6/rpc" in c) for _, c in remote.calls] == [
            (True, False), (False, True)
        ]

    def test_core_system_asks_device_type(self):
        menu, prompt, remote, _ = _menu([
            "Core System Methods", "JACK", "Jack.Reboot", "192.168.1.9",
            BACK_CHOICE, BACK_CHOICE, BACK_CHOICE,
        ])
        menu.run()

        assert prompt.menus[1] == [BACK_CHOICE, "Shelly", "JACK"]
        assert prompt.menus[2] == [BACK_CHOICE, *JACK_SYSTEM_METHODS]
        assert prompt.menus[3] == prompt.menus[2]
        assert prompt.menus[4] == prompt.menus[1]
        assert '"method":"Jack.Reboot"' in remote.calls[0][1]

    def test_empty_ip_reprompts_and_cancel_returns_to_methods(self):
        menu, prompt, remote, _ = _menu(
            ["WiFi Methods", "WiFi.GetConfig", "", CANCEL, BACK_CHOICE, BACK_CHOICE]
        )
        menu.run()

        assert remote.calls == []
        assert len(prompt.placeholders) == 2
        assert "An IP address is required" in prompt.infos
        assert prompt.menus[2] == WIFI_METHODS

    def test_remote_failure_shown(self):
        failing = FakeRemote(result=Result.err(Error(ErrorType.REMOTE_ERROR, "ssh barndo exited 255")))
        menu, prompt, _, terminal = _menu(
            ["MQTT Methods", "MQTT.GetStatus", "10.0.0.7", BACK_CHOICE, BACK_CHOICE], remote=failing
        )
        menu.run()

        assert prompt.errors == ["ssh barndo exited 255"]
        assert terminal.calls == []

    def test_execute_returns_pretty_response(self):
        menu, _, _, _ = _menu([], remote=FakeRemote(response='{"id":1,"result":{"ok":true}}'))
        result = menu.execute("Shelly.GetStatus", "10.0.0.8")
        assert result.is_ok()
        assert result.value == json.dumps({"id": 1, "result": {"ok": True}}, indent=4)

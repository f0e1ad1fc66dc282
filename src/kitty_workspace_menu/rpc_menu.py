# =============================================================================
# RPC JSON Menu
# =============================================================================
# Compose a JSON-RPC call for a Shelly/JACK device, send it through the relay
# host and show the response in its own window. After each call the menu
# returns to the method list so the same method can be sent to another IP.

import json
import os
import shlex
import tempfile
from dataclasses import dataclass, field

from loguru import logger

from .catalog import MenuLevel
from .config_loader import ColorTheme
from .errors import Error, ErrorType, Result
from .prompt import CANCEL
from .terminal import WINDOW_OS

IP_PLACEHOLDER = "e.g., 192.168.34.100"

RULE_HEAVY = "═" * 63
RULE_LIGHT = "─" * 63


@dataclass(frozen=True)
class RpcCategory:
    label: str
    methods: tuple[str, ...] = ()
    device_types: dict[str, tuple[str, ...]] = field(default_factory=dict)


SHELLY_SYSTEM_METHODS = (
    "Shelly.GetDeviceInfo", "Shelly.GetStatus", "Shelly.GetConfig", "Shelly.ListMethods",
    "Shelly.Reboot", "Shelly.FactoryReset", "Shelly.CheckForUpdate", "Shelly.Update",
    "Shelly.GetComponents", "Shelly.ListProfiles", "Shelly.SetProfile", "Shelly.SetAuth",
    "Shelly.DetectLocation",
)

JACK_SYSTEM_METHODS = (
    "Jack.GetDeviceInfo", "Jack.GetStatus", "Jack.GetConfig", "Jack.ListMethods",
    "Jack.Reboot", "Jack.FactoryReset",
)

RPC_CATEGORIES: tuple[RpcCategory, ...] = (
    RpcCategory("Core System Methods", device_types={
        "Shelly": SHELLY_SYSTEM_METHODS,
        "JACK": JACK_SYSTEM_METHODS,
    }),
    RpcCategory("WiFi Methods", (
        "WiFi.GetStatus", "WiFi.GetConfig", "WiFi.SetConfig",
    )),
    RpcCategory("MQTT Methods", (
        "MQTT.GetStatus", "MQTT.GetConfig", "MQTT.SetConfig",
    )),
    RpcCategory("Switch/Relay Methods", (
        "Switch.GetStatus", "Switch.GetConfig", "Switch.SetConfig", "Switch.Set",
        "Switch.Toggle", "Switch.ResetCounters",
    )),
    RpcCategory("Light/Dimmer Methods", (
        "Light.GetStatus", "Light.GetConfig", "Light.SetConfig", "Light.Set", "Light.Toggle",
        "Light.DimUp", "Light.DimDown", "Light.DimStop", "Light.Calibrate",
    )),
    RpcCategory("Cover/Shutter Methods", (
        "Cover.GetStatus", "Cover.GetConfig", "Cover.SetConfig", "Cover.Open", "Cover.Close",
        "Cover.Stop", "Cover.GoToPosition", "Cover.Calibrate",
    )),
    RpcCategory("Input Methods", (
        "Input.GetStatus", "Input.GetConfig", "Input.SetConfig",
    )),
    RpcCategory("Temperature/Humidity Methods", (
        "Temperature.GetStatus", "Temperature.SetConfig", "Humidity.GetStatus",
        "Humidity.SetConfig",
    )),
    RpcCategory("Energy Meter Methods", (
        "EM.GetStatus", "EM.SetConfig", "EMData.GetStatus", "EMData.ResetCounters",
    )),
    RpcCategory("JACK-Specific Methods", (
        "Jack.GetCapabilities", "Jack.GrantEntitlement", "Jack.GetBootLog", "Led.Test",
        "Led.SetColor", "Led.GetStatus", "Jack.WaterTank.SetConfig", "Jack.WaterTank.GetConfig",
        "Jack.WaterTank.GetStatus", "Jack.RuuviScan", "Jack.RuuviRegister", "Jack.RuuviDelete",
        "Jack.RuuviList", "Jack.RuuviGetStatus", "Time.GetStatus", "Device.Identify",
    )),
)


def build_request_body(method: str) -> str:
    """Minimal JSON-RPC request, e.g. {"id":1,"method":"WiFi.GetStatus"}."""
    return json.dumps({"id": 1, "method": method}, separators=(",", ":"))


def rpc_url(ip: str) -> str:
    return f"http://{ip}/rpc"


def build_curl_command(ip: str, body: str) -> str:
    """Shell command run on the relay host to POST the request to the device."""
    return (
        f"curl -s -X POST {shlex.quote(rpc_url(ip))} "
        f"-H 'Content-Type: application/json' -d {shlex.quote(body)}"
    )


def format_response(raw: str) -> str:
    """Pretty-print a JSON response; non-JSON output is returned unchanged."""
    try:
        return json.dumps(json.loads(raw), indent=4)
    except ValueError:
        return raw


class RpcMenu:
    """Category → (device type) → method → IP submenu for the RPC JSON module."""

    def __init__(self, prompt, terminal, remote, relay_host: str, theme: ColorTheme | None = None):
        self.prompt = prompt
        self.terminal = terminal
        self.remote = remote
        self.relay_host = relay_host
        self.theme = theme

    def run(self) -> None:
        """Category loop; returns when the user backs out of the category list."""
        level = MenuLevel(
            header="RPC JSON - Select Category",
            entries=[(category.label, category) for category in RPC_CATEGORIES],
        )
        while True:
            category = level.ask(self.prompt)
            if category is None:
                return
            if category.device_types:
                self._device_type_loop(category)
            else:
                self._method_loop(f"{category.label} - Select Method", category.methods)

    def _device_type_loop(self, category: RpcCategory) -> None:
        level = MenuLevel(
            header=f"{category.label} - Select Device Type",
            entries=[(name, name) for name in category.device_types],
        )
        while True:
            device_type = level.ask(self.prompt)
            if device_type is None:
                return
            self._method_loop(
                f"{category.label} ({device_type}) - Select Method",
                category.device_types[device_type],
            )

    def _method_loop(self, header: str, methods: tuple[str, ...]) -> None:
        level = MenuLevel(header=header, entries=[(method, method) for method in methods])
        while True:
            method = level.ask(self.prompt)
            if method is None:
                return
            ip = self._ask_ip()
            if ip is None:
                continue
            self.execute(method, ip)

    def _ask_ip(self) -> str | None:
        while True:
            self.prompt.header("Enter Device IP Address")
            ip = self.prompt.input(IP_PLACEHOLDER, width=30)
            if ip is CANCEL:
                return None
            ip = ip.strip()
            if ip:
                return ip
            self.prompt.info("An IP address is required")

    def execute(self, method: str, ip: str) -> Result[str]:
        """
        Send one RPC call through the relay and show the response.

        Returns:
            Result with the formatted response, or the error that was shown
        """
        body = build_request_body(method)
        logger.info(
            "Sending RPC request",
            operation="rpc_execute",
            status="started",
            method=method,
            ip=ip,
            relay_host=self.relay_host
        )

        result = self.remote.run(self.relay_host, build_curl_command(ip, body))
        if result.is_err():
            self.prompt.error(result.error.message)
            return result

        response = format_response(result.value)
        shown = self._show_response(method, ip, response)
        if shown.is_err():
            self.prompt.error(shown.error.message)
            return shown

        self.prompt.info(f"Executed: {method}")
        return Result.ok(response)

    def _show_response(self, method: str, ip: str, response: str) -> Result[str]:
        """Open an OS window that prints the response and waits for Enter."""
        title = f"RPC: {method} @ {ip}"
        try:
            fd, response_path = tempfile.mkstemp(prefix="rpc-response-", suffix=".json")
            with os.fdopen(fd, "w") as f:
                f.write(response + "\n")
        except OSError as e:
            return Result.err(Error(
                error_type=ErrorType.LAUNCH_ERROR,
                message=f"Could not store RPC response: {e}",
                context={"method": method, "ip": ip},
                original_exception=e
            ))

        script = "\n".join([
            f"echo {shlex.quote(RULE_HEAVY)}",
            f"echo {shlex.quote('RPC Method: ' + method)}",
            f"echo {shlex.quote('Target IP:  ' + ip)}",
            f"echo {shlex.quote('Via:        ssh ' + self.relay_host)}",
            f"echo {shlex.quote(RULE_HEAVY)}",
            "echo ''",
            f"cat {shlex.quote(response_path)}",
            f"rm -f {shlex.quote(response_path)}",
            "echo ''",
            f"echo {shlex.quote(RULE_LIGHT)}",
            "echo 'Press Enter to close...'",
            "read -r _",
        ])

        result = self.terminal.open_surface(title, None, script, self.theme, window_type=WINDOW_OS)
        if result.is_err():
            try:
                os.unlink(response_path)
            except OSError:
                pass
        return result

"""Toggle action that switches the private-mode menu item on.

The action drives the application's menu through AppleScript. Its raw
string answer is parsed into a closed :data:`ToggleResult` variant.
"""

from __future__ import annotations

import logging
import subprocess
from typing import Protocol

from privsession.models.events import (
    AlreadyEnabled,
    Enabled,
    Failed,
    NotReady,
    ToggleResult,
)

LOGGER = logging.getLogger(__name__)

_ERROR_PREFIX = "error:"

# Placeholders are filled with quoted AppleScript strings before running.
_ENABLE_SCRIPT = """
tell application "System Events"
    tell process {app}
        if not (exists menu bar 1) then
            return "no_menubar"
        end if
        try
            set appMenu to menu bar item {app} of menu bar 1
            click appMenu
            delay 0.1
            set privateItem to menu item {item} of menu 1 of appMenu
            set isChecked to (value of attribute "AXMenuItemMarkChar" of privateItem) is not missing value
            if isChecked and {force} then
                click privateItem
                delay 0.2
                click appMenu
                delay 0.1
                set privateItem to menu item {item} of menu 1 of appMenu
                set isChecked to false
            end if
            if not isChecked then
                click privateItem
                delay 0.2
                return "enabled"
            else
                key code 53
                return "already_enabled"
            end if
        on error errMsg
            key code 53
            return "error:" & errMsg
        end try
    end tell
end tell
"""


class ToggleAction(Protocol):
    """Anything that can assert the private-mode permission."""

    def enable(self, force: bool = False) -> ToggleResult:
        """Enable the permission; ``force`` re-asserts it to reset the window."""
        ...


def parse_toggle_output(output: str) -> ToggleResult:
    """Convert the script's string answer into a :data:`ToggleResult`.

    Example:
        >>> parse_toggle_output("enabled\\n")
        Enabled()
        >>> parse_toggle_output("error:menu missing")
        Failed(reason='menu missing')
    """
    result = output.strip()
    if result == "enabled":
        return Enabled()
    if result == "already_enabled":
        return AlreadyEnabled()
    if result == "no_menubar":
        return NotReady()
    if result.startswith(_ERROR_PREFIX):
        reason = result[len(_ERROR_PREFIX) :].strip()
        return Failed(reason or "unknown error")
    return Failed(f"unexpected result: {result or '<empty>'}")


def _applescript_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class AppleScriptToggle:
    """Enable the private-mode menu item with ``osascript``."""

    def __init__(
        self,
        app_name: str = "Spotify",
        menu_item: str = "Private Session",
        timeout_seconds: float = 15.0,
    ) -> None:
        """Initialize the toggle.

        Args:
            app_name: Process and application menu name.
            menu_item: Title of the menu item to check.
            timeout_seconds: Max time the script may run.
        """
        self.app_name = app_name
        self.menu_item = menu_item
        self.timeout_seconds = timeout_seconds

    def build_script(self, force: bool = False) -> str:
        """Render the AppleScript for this application."""
        return _ENABLE_SCRIPT.format(
            app=_applescript_string(self.app_name),
            item=_applescript_string(self.menu_item),
            force="true" if force else "false",
        )

    def enable(self, force: bool = False) -> ToggleResult:
        """Run the script and report the outcome."""
        try:
            completed = subprocess.run(
                ["osascript", "-e", self.build_script(force)],
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired:
            return Failed(f"script timed out after {self.timeout_seconds:g}s")
        except OSError as error:
            return Failed(f"osascript unavailable: {error}")

        if completed.returncode != 0:
            message = completed.stderr.strip() or f"exit code {completed.returncode}"
            LOGGER.debug("osascript failed: %s", message)
            return Failed(message)

        return parse_toggle_output(completed.stdout)

"""Shared utility functions for display and process inspection."""

import os
import subprocess


def format_time(seconds: float | None) -> str:
    """Render a duration as a short string for status display.

    Args:
        seconds: Remaining seconds, or None when unknown.

    Returns:
        ``"expired"`` for None or negative input, ``"< 1m"`` below one
        minute, ``"Nm"`` below one hour, otherwise ``"Hh Mm"``.

    Example:
        >>> format_time(9000)
        '2h 30m'
        >>> format_time(2700)
        '45m'
        >>> format_time(30)
        '< 1m'
    """
    if seconds is None or seconds < 0:
        return "expired"
    hours = int(seconds // 3600)
    mins = int((seconds % 3600) // 60)
    if hours > 0:
        return f"{hours}h {mins}m"
    if mins > 0:
        return f"{mins}m"
    return "< 1m"


def list_running_processes() -> list[tuple[int, str]]:
    """Return process list as (pid, command) tuples."""
    if os.name == "nt":
        return []

    try:
        result = subprocess.run(
            ["ps", "-axo", "pid=,command="],
            capture_output=True,
            text=True,
            check=False,
        )
    except OSError:
        return []

    if result.returncode != 0:
        return []

    processes: list[tuple[int, str]] = []
    for raw_line in result.stdout.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        pid_raw, _, command = line.partition(" ")
        if not pid_raw.isdigit():
            continue
        processes.append((int(pid_raw), command.strip()))
    return processes


def is_app_process(command: str, app_name: str) -> bool:
    """Check whether a process command line belongs to an application.

    Matches the macOS bundle executable path (``/Foo.app/Contents/MacOS/Foo``)
    or a bare executable named after the app.

    Example:
        >>> is_app_process("/Applications/Spotify.app/Contents/MacOS/Spotify", "Spotify")
        True
        >>> is_app_process("/Applications/Spotify.app/Contents/Frameworks/Helper", "Spotify")
        False
    """
    marker = f"{app_name}.app/Contents/MacOS/{app_name}"
    _, found, rest = command.partition(marker)
    if found and (not rest or rest.startswith(" ")):
        return True
    executable = command.split(" ", 1)[0]
    return os.path.basename(executable) == app_name and ".app/" not in executable

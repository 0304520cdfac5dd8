"""Messages printed by the CLI, by key.
"""

from mclaunch.util import jvm_bin_filename
from mclaunch.download import DownloadResultError

from typing import Optional


def get_raw(key: str, kwargs: Optional[dict]) -> str:
    """Get the message of the given key, formatted with the given keyword arguments.
    The key itself is returned if no message is known for it.
    """
    try:
        return lang[key].format_map(kwargs or {})
    except KeyError:
        return key


def get(key: str, **kwargs) -> str:
    return get_raw(key, kwargs)


lang = {
    # Args root
    "args": "Command line launcher for Minecraft, compatible with the directory "
        "structure of the official launcher.",
    "args.main_dir": "Set the game directory where versions, libraries and assets are "
        "stored, defaults to the official launcher's one.",
    "args.timeout": "Set a global timeout (in decimal seconds) for network requests.",
    "args.output": "Set the output format of the launcher, defaults to human-color.",
    "args.verbose": "Enable verbose output.",
    # Args search
    "args.search": "Search for versions.",
    "args.search.kind": "Select the kind of search: official versions or installed ones.",
    # Args start
    "args.start": "Install (if needed) and start a version.",
    "args.start.version": "Version identifier, or release|snapshot for the latest one (default to release).",
    "args.start.dry": "Resolve and print the launch command without starting the game.",
    "args.start.no_install": "Don't install anything, the version must already be installed.",
    "args.start.resolution": "Set the window resolution (<width>x<height>).",
    "args.start.resolution.invalid": "invalid format '{given}', expected <width>x<height>",
    "args.start.jvm": f"Set the path of the '{jvm_bin_filename}' executable, searched on the system if omitted.",
    "args.start.jvm_args": "Replace the default JVM arguments.",
    "args.start.username": "Play offline with the given player name.",
    "args.start.login": "Authenticate with a Mojang account username, the password is prompted.",
    # Args show
    "args.show": "Show various information.",
    "args.show.about": "Display authors and version of the launcher.",
    # Common
    "echo": "{echo}",
    "cancelled": "Cancelled.",
    "keyboard_interrupt": "Keyboard interrupted.",
    # Common errors
    "error.os": "An unexpected OS error happened:",
    "error.socket": "This operation requires an operational network, but a socket error happened:",
    "error.cert": "Certificate verification failed:",
    "error.http": "Request failed: {error}",
    # Command search
    "search.type": "Type",
    "search.name": "Identifier",
    "search.release_date": "Release date",
    "search.last_modified": "Last modified",
    "search.flags": "Flags",
    "search.flags.local": "local",
    # Command start
    "start.version.loading": "Loading version {version}... ",
    "start.version.fetching": "Fetching version {version}... ",
    "start.version.loaded": "Loaded version {version}",
    "start.version.loaded.fetched": "Loaded version {version} (fetched)",
    "start.version.not_found": "Version {version} not found",
    "start.version.too_much_parents": "Too much parents while resolving versions.",
    "start.jar.found": "Checked version jar",
    "start.jar.not_found": "Version jar not found: {path}",
    "start.assets.resolving": "Checking assets version {index_version}... ",
    "start.assets.resolved": "Checked {count} assets version {index_version}",
    "start.libraries.resolved": "Checked {class_libs_count} class and {native_libs_count} native libraries",
    "start.libraries.not_found_error": "A required library is not installed: {spec}",
    "start.jvm.not_found_error": "No Java executable found, set JAVA_HOME or use --jvm.",
    "start.arguments.syntax_error": "Invalid arguments in version metadata: {error}",
    "start.starting": "Starting the game...",
    "start.exited": "Game exited with code {code}",
    # Pretty download
    "download.threads_count": "Download threads count: {count}",
    "download.start": "Download starting...",
    "download.progress": "Download: {count}/{total_count} {size:>8} @ {speed}",
    "download.error": "{name}: {message}",
    f"download.error.{DownloadResultError.CONNECTION}": "Connection error",
    f"download.error.{DownloadResultError.NOT_FOUND}": "Not found",
    f"download.error.{DownloadResultError.INVALID_SIZE}": "Invalid size",
    f"download.error.{DownloadResultError.INVALID_SHA1}": "Invalid SHA1",
    # Auth
    "auth.offline": "Playing offline as {name}",
    "auth.yggdrasil": "Authenticating {username} with Mojang...",
    "auth.yggdrasil.enter_password": "Password: ",
    "auth.logged_in": "Logged in as {name}",
    "auth.error": "Error authenticating: {message}",
}

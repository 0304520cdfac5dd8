"""Command line interface of the launcher.
"""

from subprocess import Popen
from uuid import uuid4
import socket
import time
import sys

from .parse import register_arguments, RootNs, SearchNs, StartNs
from .util import format_locale_date, format_number
from .output import Output, HumanOutput, MachineOutput
from .lang import get as _

from ..util import get_minecraft_dir
from ..auth import AuthInfo, AuthError, offline, yggdrasil
from ..http import HttpError
from ..parsing import ArgumentSyntaxError
from ..manifest import VersionManifest
from ..versions import VersionManager, VersionNotFoundError, TooMuchParentsError, \
    JarNotFoundError, LibraryNotFoundError
from ..download import DownloadError
from ..launcher import builder, SimpleWatcher, JvmNotFoundError, \
    VersionLoadingEvent, VersionFetchingEvent, VersionLoadedEvent, JarFoundEvent, \
    AssetsResolveEvent, LibrariesResolvedEvent, \
    DownloadStartEvent, DownloadProgressEvent, DownloadCompleteEvent

from typing import cast, Optional, List, Union, Dict, Callable, Any


EXIT_OK = 0
EXIT_FAILURE = 1

MANIFEST_CACHE_FILE_NAME = "mclaunch_version_manifest.json"

CommandHandler = Callable[[Any], Any]
CommandTree = Dict[str, Union[CommandHandler, "CommandTree"]]


def main(args: Optional[List[str]] = None):
    """Main entry point of the CLI, parse the arguments and dispatch to the handler of
    the subcommand.
    """

    parser = register_arguments()
    ns: RootNs = cast(RootNs, parser.parse_args(sys.argv[1:] if args is None else args))

    if ns.main_dir is None:
        ns.main_dir = get_minecraft_dir()

    ns.out = get_output(ns.out_kind)
    ns.version_manifest = VersionManifest(ns.main_dir / MANIFEST_CACHE_FILE_NAME)
    socket.setdefaulttimeout(ns.timeout)

    command_handlers = get_command_handlers()
    command_attr = "subcommand"
    while True:
        command = getattr(ns, command_attr)
        handler = command_handlers.get(command)
        if handler is None:
            parser.print_help()
            sys.exit(EXIT_FAILURE)
        elif callable(handler):
            cmd(handler, ns)
        elif isinstance(handler, dict):
            command_attr = f"{command}_{command_attr}"
            command_handlers = handler
            continue
        sys.exit(EXIT_OK)


def get_output(kind: str) -> Output:
    if kind == "human-color":
        return HumanOutput(True)
    elif kind == "human":
        return HumanOutput(False)
    elif kind == "machine":
        return MachineOutput()
    else:
        raise ValueError(kind)


def get_command_handlers() -> CommandTree:
    return {
        "search": cmd_search,
        "start": cmd_start,
        "show": {
            "about": cmd_show_about,
        },
    }


def cmd(handler: CommandHandler, ns: RootNs):
    """Run the given handler, errors that are not handled by it are printed before
    exiting with a failure code.
    """

    try:
        handler(ns)
        sys.exit(EXIT_OK)

    except ValueError as error:
        ns.out.task("FAILED", None)
        ns.out.finish()
        for arg in error.args:
            ns.out.task(None, "echo", echo=str(arg))
            ns.out.finish()

    except KeyboardInterrupt:
        ns.out.finish()
        ns.out.task("HALT", "keyboard_interrupt")
        ns.out.finish()

    except HttpError as error:
        ns.out.task("FAILED", "error.http", error=str(error))
        ns.out.finish()

    except OSError as error:

        from urllib.error import URLError
        from ssl import SSLCertVerificationError

        key = "error.os"
        if isinstance(error, URLError) and isinstance(error.reason, SSLCertVerificationError):
            key = "error.cert"
        elif isinstance(error, (URLError, socket.gaierror, socket.timeout)):
            key = "error.socket"

        ns.out.task("FAILED", None)
        ns.out.finish()
        ns.out.task(None, key)
        ns.out.finish()

        import traceback
        traceback.print_exc()

    sys.exit(EXIT_FAILURE)


def cmd_search(ns: SearchNs):

    table = ns.out.table()
    search = ns.input
    manager = VersionManager(ns.main_dir / "versions")

    if ns.kind == "mojang":

        table.add(_("search.type"), _("search.name"), _("search.release_date"), _("search.flags"))
        table.separator()

        alias = False
        if search is not None:
            search, alias = ns.version_manifest.filter_latest(search)

        for version_data in ns.version_manifest.all_versions():
            version_id = version_data["id"]
            if search is None or (alias and search == version_id) or (not alias and search in version_id):
                table.add(
                    version_data["type"],
                    version_id,
                    format_locale_date(version_data["releaseTime"]),
                    _("search.flags.local") if manager.metadata_exists(version_id) else "")

    elif ns.kind == "local":

        table.add(_("search.name"), _("search.last_modified"))
        table.separator()

        for version_id in manager.list_versions():
            if search is None or search in version_id:
                table.add(version_id, format_locale_date(manager.metadata_file(version_id).stat().st_mtime))

    else:
        raise ValueError(ns.kind)

    table.print()
    sys.exit(EXIT_OK)


def cmd_start(ns: StartNs):

    auth_info = prompt_authenticate(ns)
    if auth_info is None:
        sys.exit(EXIT_FAILURE)

    launcher_builder = builder().root_dir(ns.main_dir).auth(auth_info)
    if ns.jvm is not None:
        launcher_builder.jre(ns.jvm)
    if ns.resolution is not None:
        launcher_builder.resolution(*ns.resolution)
    if ns.jvm_args is not None:
        launcher_builder.jvm_options(ns.jvm_args.split())

    try:

        launcher = launcher_builder.build()
        version_id = ns.version

        if not ns.no_install:
            version_id = launcher.install(version_id, ns.version_manifest, watcher=StartWatcher(ns))
        elif ns.version_manifest.is_alias(version_id):
            version_id = ns.version_manifest.filter_latest(version_id)[0]

        args = launcher.to_arguments(version_id)
        command = [args.program(), *args.args()]

        if ns.dry:
            ns.out.print(" ".join(command) + "\n")
            sys.exit(EXIT_OK)

        ns.out.task("..", "start.starting")
        ns.out.finish()
        if ns.verbose >= 1:
            ns.out.print(" ".join(command) + "\n")

        exit_code = wait_process(args.start())
        ns.out.task("INFO", "start.exited", code=exit_code)
        ns.out.finish()
        sys.exit(exit_code)

    except VersionNotFoundError as error:
        ns.out.task("FAILED", "start.version.not_found", version=error.version)
        ns.out.finish()

    except TooMuchParentsError as error:
        ns.out.task("FAILED", "start.version.too_much_parents")
        ns.out.finish()
        ns.out.task(None, "echo", echo=", ".join(error.versions))
        ns.out.finish()

    except JarNotFoundError as error:
        ns.out.task("FAILED", "start.jar.not_found", path=str(error.path))
        ns.out.finish()

    except JvmNotFoundError:
        ns.out.task("FAILED", "start.jvm.not_found_error")
        ns.out.finish()

    except LibraryNotFoundError as error:
        ns.out.task("FAILED", "start.libraries.not_found_error", spec=str(error.lib))
        ns.out.finish()

    except ArgumentSyntaxError as error:
        ns.out.task("FAILED", "start.arguments.syntax_error", error=str(error))
        ns.out.finish()

    except DownloadError as error:
        ns.out.task("FAILED", None)
        ns.out.finish()
        for entry, code in error.errors:
            ns.out.task(None, "download.error", name=entry.name, message=_(f"download.error.{code}"))
            ns.out.finish()

    sys.exit(EXIT_FAILURE)


def cmd_show_about(ns: RootNs):

    from .. import LAUNCHER_VERSION, LAUNCHER_AUTHORS, LAUNCHER_URL

    print(f"Version: {LAUNCHER_VERSION}")
    print(f"Authors: {', '.join(LAUNCHER_AUTHORS)}")
    print(f"Website: {LAUNCHER_URL}")


def prompt_authenticate(ns: StartNs) -> Optional[AuthInfo]:
    """Authenticate the player as requested by the arguments, offline by default. None
    is returned if authentication failed, the error being already printed.
    """

    if ns.login is None:
        name = ns.username or uuid4().hex[:8]
        if ns.verbose >= 1:
            ns.out.task("INFO", "auth.offline", name=name)
            ns.out.finish()
        return offline(name).auth()

    ns.out.task("..", "auth.yggdrasil", username=ns.login)
    ns.out.finish()
    ns.out.task(None, "auth.yggdrasil.enter_password")
    password = ns.out.prompt(password=True)
    if password is None:
        ns.out.task("FAILED", "cancelled")
        ns.out.finish()
        return None

    try:
        auth_info = yggdrasil(ns.login, password).auth()
    except AuthError as error:
        ns.out.task("FAILED", None)
        ns.out.task(None, "auth.error", message=str(error))
        ns.out.finish()
        return None

    ns.out.task("OK", "auth.logged_in", name=auth_info.user_profile.name)
    ns.out.finish()
    return auth_info


def wait_process(process: Popen) -> int:
    """Wait for the game to exit, the game is killed on keyboard interrupt.
    """
    try:
        while process.poll() is None:
            time.sleep(1)
    except KeyboardInterrupt:
        process.kill()
        raise
    finally:
        process.wait()
    return process.returncode


class StartWatcher(SimpleWatcher):

    def __init__(self, ns: RootNs) -> None:

        def progress_task(key: str, **kwargs) -> None:
            ns.out.task("..", key, **kwargs)

        def finish_task(key: str, **kwargs) -> None:
            ns.out.task("OK", key, **kwargs)
            ns.out.finish()

        def version_loaded(e: VersionLoadedEvent) -> None:
            finish_task("start.version.loaded.fetched" if e.fetched else "start.version.loaded", version=e.version)

        def assets_resolve(e: AssetsResolveEvent) -> None:
            if e.count is None:
                progress_task("start.assets.resolving", index_version=e.index_version)
            else:
                finish_task("start.assets.resolved", index_version=e.index_version, count=e.count)

        def libraries_resolved(e: LibrariesResolvedEvent) -> None:
            finish_task("start.libraries.resolved", class_libs_count=e.class_libs_count, native_libs_count=e.native_libs_count)

        super().__init__({
            VersionLoadingEvent: lambda e: progress_task("start.version.loading", version=e.version),
            VersionFetchingEvent: lambda e: progress_task("start.version.fetching", version=e.version),
            VersionLoadedEvent: version_loaded,
            JarFoundEvent: lambda e: finish_task("start.jar.found"),
            AssetsResolveEvent: assets_resolve,
            LibrariesResolvedEvent: libraries_resolved,
            DownloadStartEvent: self.download_start,
            DownloadProgressEvent: self.download_progress,
            DownloadCompleteEvent: self.download_complete,
        })

        self.ns = ns
        self.entries_count = 0
        self.speeds: List[float] = []
        self.sizes: List[int] = []
        self.size = 0

    def download_start(self, e: DownloadStartEvent) -> None:

        if self.ns.verbose >= 1:
            self.ns.out.task("INFO", "download.threads_count", count=e.threads_count)
            self.ns.out.finish()

        self.entries_count = e.entries_count
        self.speeds = [0.0] * e.threads_count
        self.sizes = [0] * e.threads_count
        self.size = 0
        self.ns.out.task("..", "download.start")

    def download_progress(self, e: DownloadProgressEvent) -> None:

        self.speeds[e.thread_id] = e.speed
        self.sizes[e.thread_id] = e.size

        total_count = str(self.entries_count)
        self.ns.out.task("..", "download.progress",
            count=f"{e.count:{len(total_count)}}",
            total_count=total_count,
            size=f"{format_number(self.size + sum(self.sizes))}o",
            speed=f"{format_number(sum(self.speeds))}o/s")

        if e.done:
            self.size += e.size
            self.sizes[e.thread_id] = 0

    def download_complete(self, e: DownloadCompleteEvent) -> None:
        self.ns.out.task("OK", None)
        self.ns.out.finish()

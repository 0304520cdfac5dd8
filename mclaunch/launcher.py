"""Launching of the game: a `Launcher` built for a game directory and an authenticated
player resolves the launch arguments of an installed version, which are then used to
start the game process.

    auth_info = offline("Steve").auth()
    launcher = create(Path("/home/steve/.minecraft"), auth_info)
    process = launcher.to_arguments("1.12.2").start()
    process.wait()
"""

from subprocess import Popen, PIPE, DEVNULL, TimeoutExpired
from json import JSONDecodeError
from pathlib import Path
import platform
import hashlib
import shutil
import json
import os

from .versions import VersionManager, MinecraftVersion, NativeCollection, GameOption, \
    TooMuchParentsError, JarNotFoundError, MAX_PARENTS
from .download import DownloadList, DownloadEntry, DownloadResultProgress, DownloadResultError, DownloadError
from .manifest import VersionManifest
from .parsing import ParameterStrategy
from .http import http_request
from .util import jvm_bin_filename
from .auth import AuthInfo
from . import LAUNCHER_NAME, LAUNCHER_VERSION

from typing import Optional, Union, Dict, List, Tuple, Any, Callable


RESOURCES_URL = "https://resources.download.minecraft.net/"

DEFAULT_RESOLUTION = (854, 480)
DEFAULT_JVM_OPTIONS = [
    "-Xmn128m",
    "-Xmx2048m",
    "-XX:+UseG1GC",
    "-XX:-UseAdaptiveSizePolicy",
    "-XX:-OmitStackTraceInFastThrow",
    "-Dfml.ignoreInvalidMinecraftCertificates=true",
    "-Dfml.ignorePatchDiscrepancies=true",
]


class Watcher:
    """Base class for watchers of the install process, receiving events.
    """

    def handle(self, event: Any) -> None:
        """Called when an event is triggered, the default implementation does nothing.
        """


class SimpleWatcher(Watcher):
    """A watcher dispatching each event to the handler registered for its type.
    """

    def __init__(self, handlers: Dict[type, Callable[[Any], None]]) -> None:
        self.handlers = handlers

    def handle(self, event: Any) -> None:
        handler = self.handlers.get(type(event))
        if handler is not None:
            handler(event)


class LauncherBuilder:
    """Configure and build a `Launcher`, only the root directory and the authentication
    info are required.
    """

    def __init__(self) -> None:
        self._root_dir: Optional[Path] = None
        self._assets_dir: Optional[Path] = None
        self._libraries_dir: Optional[Path] = None
        self._jre: Optional[Path] = None
        self._auth: Optional[AuthInfo] = None
        self._launcher = (LAUNCHER_NAME, LAUNCHER_VERSION)
        self._resolution = DEFAULT_RESOLUTION
        self._jvm_options = list(DEFAULT_JVM_OPTIONS)

    def root_dir(self, path: Union[str, Path]) -> "LauncherBuilder":
        self._root_dir = Path(path)
        return self

    def assets_dir(self, path: Union[str, Path]) -> "LauncherBuilder":
        self._assets_dir = Path(path)
        return self

    def libraries_dir(self, path: Union[str, Path]) -> "LauncherBuilder":
        self._libraries_dir = Path(path)
        return self

    def jre(self, path: Union[str, Path]) -> "LauncherBuilder":
        self._jre = Path(path)
        return self

    def auth(self, auth_info: AuthInfo) -> "LauncherBuilder":
        self._auth = auth_info
        return self

    def launcher(self, name: str, version: str) -> "LauncherBuilder":
        self._launcher = (name, version)
        return self

    def resolution(self, width: int, height: int) -> "LauncherBuilder":
        if width <= 0 or height <= 0:
            raise ValueError(f"invalid resolution {width}x{height}")
        self._resolution = (width, height)
        return self

    def jvm_options(self, options: List[str]) -> "LauncherBuilder":
        self._jvm_options = list(options)
        return self

    def build(self) -> "Launcher":
        """Build the launcher, searching for a Java executable if none has been given.

        :raises ValueError: If the root directory or the authentication is missing.
        :raises JvmNotFoundError: If no Java executable can be found.
        """

        if self._root_dir is None:
            raise ValueError("the root directory is required")
        if self._auth is None:
            raise ValueError("the authentication info is required")

        jre = self._jre
        if jre is None:
            found = find_jre()
            if not len(found):
                raise JvmNotFoundError()
            jre = Path(found[0])

        return Launcher(
            self._root_dir,
            self._assets_dir or self._root_dir / "assets",
            self._libraries_dir or self._root_dir / "libraries",
            jre,
            self._auth,
            self._launcher,
            self._resolution,
            self._jvm_options)


class Launcher:
    """A launcher for a game directory, producing launch arguments for the versions
    installed in it.
    """

    def __init__(self,
        root_dir: Path,
        assets_dir: Path,
        libraries_dir: Path,
        jre: Path,
        auth_info: AuthInfo,
        launcher: Tuple[str, str] = (LAUNCHER_NAME, LAUNCHER_VERSION),
        resolution: Tuple[int, int] = DEFAULT_RESOLUTION,
        jvm_options: Optional[List[str]] = None
    ) -> None:
        self.root_dir = root_dir
        self.assets_dir = assets_dir
        self.libraries_dir = libraries_dir
        self.jre = jre
        self.auth_info = auth_info
        self.launcher_name, self.launcher_version = launcher
        self.resolution = resolution
        self.jvm_options = list(DEFAULT_JVM_OPTIONS if jvm_options is None else jvm_options)
        self.version_manager = VersionManager(root_dir / "versions")

    def features(self) -> Dict[str, bool]:
        """Features used to interpret the rules of modern arguments, the resolution is
        always given to the game.
        """
        return {
            "is_demo_user": False,
            "has_custom_resolution": True,
        }

    def generate_argument_map(self, version: MinecraftVersion) -> Dict[str, str]:
        """Compute the values of the parameters used by the arguments of the given
        version.

        :raises LibraryNotFoundError: If a library of the class path is not installed.
        :raises JarNotFoundError: If the version's JAR file is not installed.
        """

        auth = self.auth_info
        profile = auth.user_profile
        asset_index = version.asset_index()
        assets_index_name = "" if asset_index is None else asset_index.id
        jar_path = self.version_manager.primary_jar_path(version.version_jar())

        return {
            "auth_access_token": auth.access_token,
            "auth_session": auth.format_session(),
            "auth_player_name": profile.name,
            "auth_uuid": profile.uuid.hex,
            "auth_xuid": "",
            "user_type": auth.user_type,
            "user_properties": auth.user_properties(),
            "user_property_map": auth.user_property_map(),
            "clientid": "",
            "profile_name": profile.name,
            "version_name": version.id,
            "version_type": version.type,
            "game_directory": str(self.root_dir.absolute()),
            "assets_root": str(self.assets_dir.absolute()),
            "game_assets": str(self.game_assets_dir(assets_index_name).absolute()),
            "assets_index_name": assets_index_name,
            "resolution_width": str(self.resolution[0]),
            "resolution_height": str(self.resolution[1]),
            "language": "en-us",
            "launcher_name": self.launcher_name,
            "launcher_version": self.launcher_version,
            "natives_directory": str(self.version_manager.natives_path(version.id).absolute()),
            "primary_jar": str(jar_path.absolute()),
            "library_directory": str(self.libraries_dir.absolute()),
            "classpath_separator": os.pathsep,
            "classpath": version.classpath(self.libraries_dir, self.version_manager, features=self.features()),
        }

    def game_assets_dir(self, assets_index_name: str) -> Path:
        """Directory of the assets given to the game, versions using a virtual assets
        index need their assets copied to a dedicated directory.
        """
        if len(assets_index_name):
            try:
                with (self.assets_dir / "indexes" / f"{assets_index_name}.json").open("rb") as index_fp:
                    if json.load(index_fp).get("virtual", False) is True:
                        return self.assets_dir / "virtual" / assets_index_name
            except (OSError, JSONDecodeError, AttributeError):
                pass
        return self.assets_dir

    def to_arguments(self, version_id: str) -> "LaunchArguments":
        """Resolve the arguments to launch the given version, it must be installed.

        :raises VersionNotFoundError: If the version or one of its parents is missing.
        :raises LibraryNotFoundError: If a library of the class path is not installed.
        :raises JarNotFoundError: If the version's JAR file is not installed.
        :raises ArgumentSyntaxError: If the legacy arguments of the version are malformed.
        """

        version = self.version_manager.version_of(version_id)
        features = self.features()

        main_class = version.main_class()
        if main_class is None:
            raise ValueError(f"metadata of {version_id}: /mainClass must be a string")

        strategy = ParameterStrategy.from_dict(self.generate_argument_map(version))

        return LaunchArguments(
            str(self.jre),
            [*self.jvm_options, *version.jvm_options(strategy, features)],
            main_class,
            version.game_options(strategy, features),
            version.native_collection(self.libraries_dir, features=features),
            self.version_manager.natives_path(version_id),
            self.root_dir)

    def install(self, version_id: str, manifest: Optional[VersionManifest] = None, *,
        watcher: Optional[Watcher] = None
    ) -> str:
        """Install the given version: fetch its missing metadata and the metadata of its
        parents, then download its JAR file, libraries and assets if missing. Aliases
        'release' and 'snapshot' are resolved through the manifest.

        :return: The identifier of the installed version.
        :raises VersionNotFoundError: If a version is neither installed nor in the manifest.
        :raises DownloadError: If some files could not be downloaded.
        :raises HttpError: If the manifest or an assets index can't be requested.
        """

        watcher = watcher or Watcher()
        manifest = manifest or VersionManifest()
        dl = DownloadList()

        if manifest.is_alias(version_id):
            version_id = manifest.filter_latest(version_id)[0]

        version = self._install_metadata(version_id, manifest, watcher)
        self._resolve_jar(version, dl, watcher)
        self._resolve_libraries(version, dl, watcher)
        assets = self._resolve_assets(version, dl, watcher)
        self._download(dl, watcher)

        if assets is not None:
            self._finalize_assets(*assets)

        return version_id

    def _install_metadata(self, version_id: str, manifest: VersionManifest, watcher: Watcher) -> MinecraftVersion:

        manager = self.version_manager
        loaded: List[str] = []
        current: Optional[str] = version_id

        while current is not None:

            if len(loaded) > MAX_PARENTS:
                raise TooMuchParentsError(loaded)

            watcher.handle(VersionLoadingEvent(current))

            fetched = False
            if not manager.check_metadata(current, manifest):
                watcher.handle(VersionFetchingEvent(current))
                manager.fetch(current, manifest)
                fetched = True

            watcher.handle(VersionLoadedEvent(current, fetched))

            loaded.append(current)
            current = MinecraftVersion.from_json(current, manager.read_metadata(current)).inherits_from

        return manager.version_of(version_id)

    def _resolve_jar(self, version: MinecraftVersion, dl: DownloadList, watcher: Watcher) -> None:

        jar_path = self.version_manager.primary_jar_path(version.version_jar())
        client = version.client_download()

        if client is not None:
            dl.add(client.to_entry(jar_path, f"{version.id}.jar"), verify=True)
        elif not jar_path.is_file():
            raise JarNotFoundError(version.id, jar_path)

        watcher.handle(JarFoundEvent())

    def _resolve_libraries(self, version: MinecraftVersion, dl: DownloadList, watcher: Watcher) -> None:

        class_libs_count = 0
        native_libs_count = 0

        for resolved in version.resolve_libraries(self.features()):
            dl.add(resolved.download.to_entry(resolved.path(self.libraries_dir), str(resolved.spec)), verify=True)
            if resolved.library.is_native():
                native_libs_count += 1
            else:
                class_libs_count += 1

        watcher.handle(LibrariesResolvedEvent(class_libs_count, native_libs_count))

    def _resolve_assets(self, version: MinecraftVersion, dl: DownloadList, watcher: Watcher) -> "Optional[Tuple[Dict[str, Path], List[Path]]]":
        """Add the missing assets to the download list.

        :return: The assets files by name and the directories where to copy them after
        download for old versions, or none if the version has no assets.
        """

        asset_index = version.asset_index()
        if asset_index is None:
            return None

        watcher.handle(AssetsResolveEvent(asset_index.id, None))

        index_file = self.assets_dir / "indexes" / f"{asset_index.id}.json"

        try:
            with index_file.open("rb") as index_fp:
                index = json.load(index_fp)
        except (OSError, JSONDecodeError):

            index_info = asset_index.download_info()
            res = http_request("GET", index_info.url, accept="application/json")
            if index_info.size is not None and len(res.data) != index_info.size:
                raise ValueError(f"assets index {asset_index.id}: invalid size")
            if index_info.sha1 is not None and hashlib.sha1(res.data).hexdigest() != index_info.sha1:
                raise ValueError(f"assets index {asset_index.id}: invalid sha1")

            index = res.json()
            index_file.parent.mkdir(parents=True, exist_ok=True)
            with index_file.open("wb") as index_fp:
                index_fp.write(res.data)

        if not isinstance(index, dict):
            raise ValueError("assets index: / must be an object")

        map_to_resources = index.get("map_to_resources", False)
        virtual = index.get("virtual", False)

        if not isinstance(map_to_resources, bool):
            raise ValueError("assets index: /map_to_resources must be a boolean")
        if not isinstance(virtual, bool):
            raise ValueError("assets index: /virtual must be a boolean")

        objects = index.get("objects")
        if not isinstance(objects, dict):
            raise ValueError("assets index: /objects must be an object")

        objects_dir = self.assets_dir / "objects"
        assets: Dict[str, Path] = {}

        for asset_id, asset_obj in objects.items():

            if not isinstance(asset_obj, dict):
                raise ValueError(f"assets index: /objects/{asset_id} must be an object")

            asset_hash = asset_obj.get("hash")
            if not isinstance(asset_hash, str):
                raise ValueError(f"assets index: /objects/{asset_id}/hash must be a string")

            asset_size = asset_obj.get("size")
            if not isinstance(asset_size, int):
                raise ValueError(f"assets index: /objects/{asset_id}/size must be an integer")

            asset_file = objects_dir / asset_hash[:2] / asset_hash
            assets[asset_id] = asset_file
            dl.add(DownloadEntry(f"{RESOURCES_URL}{asset_hash[:2]}/{asset_hash}", asset_file,
                                 size=asset_size, sha1=asset_hash, name=asset_id), verify=True)

        watcher.handle(AssetsResolveEvent(asset_index.id, len(assets)))

        copy_dirs = []
        if map_to_resources:
            copy_dirs.append(self.root_dir / "resources")
        if virtual:
            copy_dirs.append(self.assets_dir / "virtual" / asset_index.id)

        return assets, copy_dirs

    def _finalize_assets(self, assets: Dict[str, Path], copy_dirs: List[Path]) -> None:
        for copy_dir in copy_dirs:
            for asset_id, asset_file in assets.items():
                dst_file = copy_dir / asset_id
                dst_file.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(str(asset_file), str(dst_file))

    def _download(self, dl: DownloadList, watcher: Watcher) -> None:

        entries_count = len(dl.entries)
        if not entries_count:
            return

        threads_count = min(entries_count, (os.cpu_count() or 1) * 4)
        errors = []

        watcher.handle(DownloadStartEvent(threads_count, entries_count, dl.size))

        for result_count, result in dl.download(threads_count, partial_progress=True):
            if isinstance(result, DownloadResultProgress):
                watcher.handle(DownloadProgressEvent(
                    result.thread_id,
                    result_count,
                    result.entry,
                    result.size,
                    result.speed,
                    result.done
                ))
            elif isinstance(result, DownloadResultError):
                errors.append((result.entry, result.code))

        if len(errors):
            raise DownloadError(errors)

        dl.clear()
        watcher.handle(DownloadCompleteEvent())


class LaunchArguments:
    """Resolved arguments of a version, ready to start the game. The game can be
    started only once with the same arguments.
    """

    def __init__(self,
        program: str,
        jvm_options: List[str],
        main_class: str,
        game_options: List[GameOption],
        natives: NativeCollection,
        natives_dir: Path,
        work_dir: Path
    ) -> None:
        self._program = program
        self._jvm_options = tuple(jvm_options)
        self._main_class = main_class
        self._game_options = tuple(game_options)
        self._natives = natives
        self._natives_dir = natives_dir
        self._work_dir = work_dir
        self._started = False

    @property
    def main_class(self) -> str:
        return self._main_class

    @property
    def jvm_options(self) -> List[str]:
        return list(self._jvm_options)

    @property
    def game_options(self) -> List[GameOption]:
        return list(self._game_options)

    @property
    def natives_dir(self) -> Path:
        return self._natives_dir

    def program(self) -> str:
        """Path to the Java executable.
        """
        return self._program

    def args(self) -> List[str]:
        """The arguments given to the program: JVM options, main class and game options.
        """
        args = list(self._jvm_options)
        args.append(self._main_class)
        for option in self._game_options:
            args.extend(option.to_args())
        return args

    def extract_natives(self) -> List[str]:
        return self._natives.extract_to(self._natives_dir)

    def spawn_new_process(self) -> Popen:
        return Popen([self.program(), *self.args()], cwd=self._work_dir)

    def start(self) -> Popen:
        """Extract the native libraries and start the game process. The returned process
        can be waited for its exit status.

        :raises RuntimeError: If the game has already been started with these arguments.
        :raises LibraryNotFoundError: If a native library is not installed.
        :raises OSError: If the process can't be created.
        """

        if self._started:
            raise RuntimeError("the game has already been started with these arguments")

        self.extract_natives()
        process = self.spawn_new_process()
        self._started = True
        return process

    def __repr__(self) -> str:
        return f"<LaunchArguments {self._program} {self._main_class}>"


def builder() -> LauncherBuilder:
    return LauncherBuilder()


def create(game_dir: Union[str, Path], auth_info: AuthInfo) -> Launcher:
    """Create a launcher for the given game directory with default options.

    :raises JvmNotFoundError: If no Java executable can be found.
    """
    return builder().root_dir(game_dir).auth(auth_info).build()


def find_jre() -> List[str]:
    """Find the Java executables installed on this system, in order: the one from
    `JAVA_HOME`, the alternatives known to `update-alternatives` on Linux and the one
    found on `PATH`.
    """

    candidates = []

    java_home = os.environ.get("JAVA_HOME")
    if java_home:
        candidates.append(str(Path(java_home) / "bin" / jvm_bin_filename))

    if platform.system() == "Linux":
        try:
            process = Popen(["update-alternatives", "--list", "java"], stdout=PIPE, stderr=DEVNULL, universal_newlines=True)
            stdout, _stderr = process.communicate(timeout=5)
            if process.returncode == 0:
                candidates.extend(line.strip() for line in stdout.splitlines() if len(line.strip()))
        except TimeoutExpired:
            process.kill()
            process.communicate()
        except OSError:
            pass

    which_path = shutil.which(jvm_bin_filename)
    if which_path is not None:
        candidates.append(which_path)

    result = []
    for candidate in candidates:
        if candidate not in result and Path(candidate).is_file():
            result.append(candidate)

    return result


class JvmNotFoundError(Exception):
    """Raised when no Java executable can be found to run the game.
    """

    def __str__(self) -> str:
        return "no java executable found, set JAVA_HOME or give the path explicitly"


class VersionEvent:
    """Base class for events regarding version.
    """
    __slots__ = "version",
    def __init__(self, version: str) -> None:
        self.version = version

class VersionLoadingEvent(VersionEvent):
    """Event triggered when a version is being loaded.
    """
    __slots__ = tuple()

class VersionFetchingEvent(VersionEvent):
    """Event triggered when the metadata of a version is being fetched.
    """
    __slots__ = tuple()

class VersionLoadedEvent(VersionEvent):
    __slots__ = "fetched",
    def __init__(self, version: str, fetched: bool) -> None:
        super().__init__(version)
        self.fetched = fetched

class JarFoundEvent:
    __slots__ = tuple()

class LibrariesResolvedEvent:
    """Event triggered when all libraries have been resolved.
    """
    __slots__ = "class_libs_count", "native_libs_count"
    def __init__(self, class_libs_count: int, native_libs_count: int) -> None:
        self.class_libs_count = class_libs_count
        self.native_libs_count = native_libs_count

class AssetsResolveEvent:
    """Event triggered when assets start being resolved (count is none) and when
    they are resolved.
    """
    __slots__ = "index_version", "count"
    def __init__(self, index_version: str, count: Optional[int]) -> None:
        self.index_version = index_version
        self.count = count

class DownloadStartEvent:
    __slots__ = "threads_count", "entries_count", "size"
    def __init__(self, threads_count: int, entries_count: int, size: int) -> None:
        self.threads_count = threads_count
        self.entries_count = entries_count
        self.size = size

class DownloadProgressEvent:
    __slots__ = "thread_id", "count", "entry", "size", "speed", "done"
    def __init__(self, thread_id: int, count: int, entry: DownloadEntry, size: int, speed: float, done: bool) -> None:
        self.thread_id = thread_id
        self.count = count
        self.entry = entry
        self.size = size
        self.speed = speed
        self.done = done

class DownloadCompleteEvent:
    __slots__ = tuple()

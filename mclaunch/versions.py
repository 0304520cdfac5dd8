"""Parsing of the versions metadata stored in the `versions` directory of the game, the
format is the one used by Mojang for its official launcher. A version may inherit from
another one (`inheritsFrom`), each accessor of `MinecraftVersion` resolves its value
through this hierarchy.
"""

from json import JSONDecodeError
from zipfile import ZipFile
from pathlib import Path
import platform
import shutil
import json
import re
import os

from .parsing import ParameterStrategy, parse, parse_token, expand
from .util import LibrarySpecifier, calc_input_sha1, minecraft_os, minecraft_arch, minecraft_arch_bits
from .download import DownloadEntry
from .http import HttpError, http_request

from typing import Optional, Iterator, Dict, List, Tuple, Any, Set, TYPE_CHECKING

if TYPE_CHECKING:
    from .manifest import VersionManifest


LIBRARIES_URL = "https://libraries.minecraft.net/"
LEGACY_ASSETS_INDEX_URL = "https://s3.amazonaws.com/Minecraft.Download/indexes/{}.json"
MAX_PARENTS = 10


class DownloadInfo:
    """Where to download a file from, with its optional size and sha1.
    """

    __slots__ = "url", "size", "sha1"

    def __init__(self, url: str, size: Optional[int] = None, sha1: Optional[str] = None) -> None:
        self.url = url
        self.size = size
        self.sha1 = sha1

    @classmethod
    def from_json(cls, value: Any, path: str) -> "DownloadInfo":

        if not isinstance(value, dict):
            raise ValueError(f"{path} must be an object")

        url = value.get("url")
        if not isinstance(url, str):
            raise ValueError(f"{path}/url must be a string")

        size = value.get("size")
        if size is not None and not isinstance(size, int):
            raise ValueError(f"{path}/size must be an integer")

        sha1 = value.get("sha1")
        if sha1 is not None and not isinstance(sha1, str):
            raise ValueError(f"{path}/sha1 must be a string")

        return cls(url, size, sha1)

    def to_entry(self, dst: Path, name: Optional[str] = None) -> DownloadEntry:
        return DownloadEntry(self.url, dst, size=self.size, sha1=self.sha1, name=dst.name if name is None else name)

    def __repr__(self) -> str:
        return f"<DownloadInfo {self.url}>"


class AssetIndexInfo:
    """Identifier and download information of a version's assets index. Really old
    versions only give the identifier.
    """

    __slots__ = "id", "url", "sha1", "size", "total_size"

    def __init__(self, id: str, url: Optional[str] = None, sha1: Optional[str] = None,
        size: Optional[int] = None, total_size: Optional[int] = None
    ) -> None:
        self.id = id
        self.url = url
        self.sha1 = sha1
        self.size = size
        self.total_size = total_size

    @classmethod
    def from_json(cls, value: Any, path: str) -> "AssetIndexInfo":

        if not isinstance(value, dict):
            raise ValueError(f"{path} must be an object")

        index_id = value.get("id")
        if not isinstance(index_id, str):
            raise ValueError(f"{path}/id must be a string")

        url = value.get("url")
        if url is not None and not isinstance(url, str):
            raise ValueError(f"{path}/url must be a string")

        sha1 = value.get("sha1")
        if sha1 is not None and not isinstance(sha1, str):
            raise ValueError(f"{path}/sha1 must be a string")

        size = value.get("size")
        if size is not None and not isinstance(size, int):
            raise ValueError(f"{path}/size must be an integer")

        total_size = value.get("totalSize")
        if total_size is not None and not isinstance(total_size, int):
            raise ValueError(f"{path}/totalSize must be an integer")

        return cls(index_id, url, sha1, size, total_size)

    def download_info(self) -> DownloadInfo:
        if self.url is None:
            return DownloadInfo(LEGACY_ASSETS_INDEX_URL.format(self.id))
        return DownloadInfo(self.url, self.size, self.sha1)

    def __repr__(self) -> str:
        return f"<AssetIndexInfo {self.id}>"


class Library:
    """A library of a version's metadata. Native libraries have a `natives` mapping from
    OS name to the classifier of the archive containing the OS's dynamic libraries,
    these archives are extracted before launching the game.
    """

    __slots__ = "spec", "natives", "rules", "extract_exclude", "artifact", "classifiers", "repo_url"

    def __init__(self, spec: LibrarySpecifier) -> None:
        self.spec = spec
        self.natives: Optional[Dict[str, str]] = None
        self.rules: Optional[list] = None
        self.extract_exclude: List[str] = []
        self.artifact: Optional[DownloadInfo] = None
        self.classifiers: Dict[str, DownloadInfo] = {}
        self.repo_url = LIBRARIES_URL

    @classmethod
    def from_json(cls, value: Any, path: str) -> "Library":

        if not isinstance(value, dict):
            raise ValueError(f"{path} must be an object")

        name = value.get("name")
        if not isinstance(name, str):
            raise ValueError(f"{path}/name must be a string")

        lib = cls(LibrarySpecifier.from_str(name))

        rules = value.get("rules")
        if rules is not None:
            if not isinstance(rules, list):
                raise ValueError(f"{path}/rules must be a list")
            lib.rules = rules

        natives = value.get("natives")
        if natives is not None:
            if not isinstance(natives, dict) or not all(isinstance(c, str) for c in natives.values()):
                raise ValueError(f"{path}/natives must be an object of strings")
            lib.natives = natives

        extract = value.get("extract")
        if extract is not None:
            if not isinstance(extract, dict):
                raise ValueError(f"{path}/extract must be an object")
            exclude = extract.get("exclude", [])
            if not isinstance(exclude, list) or not all(isinstance(e, str) for e in exclude):
                raise ValueError(f"{path}/extract/exclude must be a list of strings")
            lib.extract_exclude = exclude

        downloads = value.get("downloads")
        if downloads is not None:

            if not isinstance(downloads, dict):
                raise ValueError(f"{path}/downloads must be an object")

            artifact = downloads.get("artifact")
            if artifact is not None:
                lib.artifact = DownloadInfo.from_json(artifact, f"{path}/downloads/artifact")

            classifiers = downloads.get("classifiers")
            if classifiers is not None:
                if not isinstance(classifiers, dict):
                    raise ValueError(f"{path}/downloads/classifiers must be an object")
                for classifier, classifier_dl in classifiers.items():
                    lib.classifiers[classifier] = DownloadInfo.from_json(classifier_dl, f"{path}/downloads/classifiers/{classifier}")

        repo_url = value.get("url")
        if repo_url is not None:
            if not isinstance(repo_url, str):
                raise ValueError(f"{path}/url must be a string")
            if len(repo_url):
                lib.repo_url = repo_url if repo_url.endswith("/") else f"{repo_url}/"

        return lib

    def is_native(self) -> bool:
        return self.natives is not None

    def resolve(self, features: Optional[Dict[str, bool]] = None) -> Optional[Tuple[LibrarySpecifier, DownloadInfo]]:
        """Resolve this library for the running OS and pointer width.

        :return: The specifier of the file to use (with the natives classifier if
        relevant) and where to download it, or None if the library doesn't apply.
        """

        if self.rules is not None and not interpret_rule(self.rules, features or {}, f"library {self.spec}: /rules"):
            return None

        if self.natives is not None:
            classifier = self.natives.get(minecraft_os)
            if classifier is None:
                return None
            classifier = classifier.replace("${arch}", str(minecraft_arch_bits))
            spec = self.spec.with_classifier(classifier)
            info = self.classifiers.get(classifier)
        else:
            spec = self.spec
            info = self.artifact

        if info is None or not len(info.url):
            info = DownloadInfo(f"{self.repo_url}{spec.file_path()}", None if info is None else info.size, None if info is None else info.sha1)

        return spec, info

    def __repr__(self) -> str:
        return f"<Library {self.spec}{' (native)' if self.is_native() else ''}>"


class ResolvedLibrary:
    """A library resolved for the running system, see `MinecraftVersion.resolve_libraries`.
    """

    __slots__ = "library", "spec", "download"

    def __init__(self, library: Library, spec: LibrarySpecifier, download: DownloadInfo) -> None:
        self.library = library
        self.spec = spec
        self.download = download

    def path(self, libraries_dir: Path) -> Path:
        return libraries_dir / self.spec.file_path()


class NativeCollection:
    """Archives containing native libraries of a version, each with the prefixes of the
    members that should not be extracted.
    """

    def __init__(self) -> None:
        self.libraries: List[Tuple[LibrarySpecifier, Path, List[str]]] = []

    def add(self, spec: LibrarySpecifier, path: Path, exclude: List[str]) -> None:
        self.libraries.append((spec, path, exclude))

    def __len__(self) -> int:
        return len(self.libraries)

    def extract_to(self, dst_dir: Path) -> List[str]:
        """Extract all archives into the given directory, created if needed.

        :return: The names of all extracted members.
        :raises LibraryNotFoundError: If an archive is missing.
        """

        dst_dir.mkdir(parents=True, exist_ok=True)
        dst_root = dst_dir.resolve()
        extracted = []

        for spec, archive_path, exclude in self.libraries:

            if not archive_path.is_file():
                raise LibraryNotFoundError(spec, archive_path)

            with ZipFile(archive_path, "r") as archive:
                for member in archive.infolist():

                    name = member.filename
                    if name.startswith(tuple(exclude)):
                        continue

                    dst_file = dst_dir / name
                    if dst_root not in dst_file.resolve().parents:
                        raise ValueError(f"native archive {archive_path} has an invalid member: {name}")

                    if member.is_dir():
                        dst_file.mkdir(parents=True, exist_ok=True)
                    else:
                        dst_file.parent.mkdir(parents=True, exist_ok=True)
                        with archive.open(member, "r") as src_fp, dst_file.open("wb") as dst_fp:
                            shutil.copyfileobj(src_fp, dst_fp)

                    extracted.append(name)

        return extracted


class MinecraftVersion:
    """A parsed version metadata, linked to its parent if it inherits from another
    version.
    """

    def __init__(self, id: str, parent: "Optional[MinecraftVersion]" = None) -> None:
        self.id = id
        self.parent = parent
        self.type = ""
        self.time = ""
        self.release_time = ""
        self.inherits_from: Optional[str] = None
        self.main_class_name: Optional[str] = None
        self.jar: Optional[str] = None
        self.assets: Optional[str] = None
        self.asset_index_info: Optional[AssetIndexInfo] = None
        self.minecraft_arguments: Optional[str] = None
        self.game_arguments: Optional[list] = None
        self.jvm_arguments: Optional[list] = None
        self.libraries_list: List[Library] = []
        self.downloads: Dict[str, DownloadInfo] = {}

    @classmethod
    def from_json(cls, id: str, metadata: Any) -> "MinecraftVersion":
        """Parse the given version metadata.

        :raises ValueError: If the metadata is malformed, the message gives the path of
        the invalid value.
        """

        if not isinstance(metadata, dict):
            raise ValueError("metadata: / must be an object")

        version = cls(id)

        for key, attr in (("type", "type"), ("time", "time"), ("releaseTime", "release_time")):
            value = metadata.get(key, "")
            if not isinstance(value, str):
                raise ValueError(f"metadata: /{key} must be a string")
            setattr(version, attr, value)

        for key, attr in (("inheritsFrom", "inherits_from"), ("mainClass", "main_class_name"),
                          ("jar", "jar"), ("assets", "assets"), ("minecraftArguments", "minecraft_arguments")):
            value = metadata.get(key)
            if value is not None and not isinstance(value, str):
                raise ValueError(f"metadata: /{key} must be a string")
            setattr(version, attr, value)

        asset_index = metadata.get("assetIndex")
        if asset_index is not None:
            version.asset_index_info = AssetIndexInfo.from_json(asset_index, "metadata: /assetIndex")

        arguments = metadata.get("arguments")
        if arguments is not None:
            if not isinstance(arguments, dict):
                raise ValueError("metadata: /arguments must be an object")
            for key, attr in (("game", "game_arguments"), ("jvm", "jvm_arguments")):
                value = arguments.get(key)
                if value is not None and not isinstance(value, list):
                    raise ValueError(f"metadata: /arguments/{key} must be a list")
                setattr(version, attr, value)

        libraries = metadata.get("libraries", [])
        if not isinstance(libraries, list):
            raise ValueError("metadata: /libraries must be a list")
        for i, library in enumerate(libraries):
            version.libraries_list.append(Library.from_json(library, f"metadata: /libraries/{i}"))

        downloads = metadata.get("downloads", {})
        if not isinstance(downloads, dict):
            raise ValueError("metadata: /downloads must be an object")
        for key, download in downloads.items():
            version.downloads[key] = DownloadInfo.from_json(download, f"metadata: /downloads/{key}")

        return version

    def recurse(self) -> "Iterator[MinecraftVersion]":
        """Walk through this version and all of its parents.
        """
        version = self
        while version is not None:
            yield version
            version = version.parent

    def main_class(self) -> Optional[str]:
        for version in self.recurse():
            if version.main_class_name is not None:
                return version.main_class_name
        return None

    def asset_index(self) -> Optional[AssetIndexInfo]:
        for version in self.recurse():
            if version.asset_index_info is not None:
                return version.asset_index_info
            if version.assets is not None:
                return AssetIndexInfo(version.assets)
        return None

    def version_jar(self) -> str:
        """The identifier of the version whose JAR file is used to run the game. This is
        the first `jar` found in the hierarchy, or the identifier of the last ancestor.
        """
        for version in self.recurse():
            if version.jar is not None:
                return version.jar
            if version.parent is None:
                return version.id
        raise AssertionError("unreachable")

    def client_download(self) -> Optional[DownloadInfo]:
        for version in self.recurse():
            client = version.downloads.get("client")
            if client is not None:
                return client
        return None

    def libraries(self) -> List[Library]:
        """All libraries of the hierarchy, the libraries of this version come first.
        """
        result = []
        for version in self.recurse():
            result.extend(version.libraries_list)
        return result

    def resolve_libraries(self, features: Optional[Dict[str, bool]] = None) -> List[ResolvedLibrary]:
        """Resolve the libraries that apply to the running system. If the same library
        (group, artifact and classifier) appears more than once, the first one is kept
        so that versions override the libraries of their parents.
        """
        result = []
        seen: Set[tuple] = set()
        for library in self.libraries():
            resolved = library.resolve(features)
            if resolved is None:
                continue
            spec, download = resolved
            if spec.key() in seen:
                continue
            seen.add(spec.key())
            result.append(ResolvedLibrary(library, spec, download))
        return result

    def is_modern(self) -> bool:
        """Return true if the version uses the modern arguments format (after 1.12.2).
        """
        return any(v.game_arguments is not None or v.jvm_arguments is not None for v in self.recurse())

    def game_options(self, strategy: ParameterStrategy, features: Optional[Dict[str, bool]] = None) -> "List[GameOption]":
        """Compute the game options of this version, parameters are handled with the
        given strategy.
        """

        if self.is_modern():
            args = []
            for version in reversed(list(self.recurse())):
                if version.game_arguments is not None:
                    interpret_args(version.game_arguments, features or {}, args, f"metadata of {version.id}: /arguments/game")
            return group_game_options(_substitute(arg, strategy) for arg in args)

        for version in self.recurse():
            if version.minecraft_arguments is not None:
                options = group_game_options(parse(version.minecraft_arguments, strategy))
                options.append(GameOption("--width", parse_token("${resolution_width}", strategy)))
                options.append(GameOption("--height", parse_token("${resolution_height}", strategy)))
                return options

        return []

    def jvm_options(self, strategy: ParameterStrategy, features: Optional[Dict[str, bool]] = None) -> List[str]:
        """Compute the JVM options of this version, parameters are handled with the
        given strategy. Versions without modern arguments use a builtin list of options.
        """

        args = []
        if self.is_modern():
            for version in reversed(list(self.recurse())):
                if version.jvm_arguments is not None:
                    interpret_args(version.jvm_arguments, features or {}, args, f"metadata of {version.id}: /arguments/jvm")
        else:
            interpret_args(legacy_jvm_args, features or {}, args, "<legacy_jvm_args>")

        return [_substitute(arg, strategy) for arg in args]

    def classpath(self, libraries_dir: Path, manager: "VersionManager", separator: str = os.pathsep, *,
        features: Optional[Dict[str, bool]] = None
    ) -> str:
        """Compute the class path of this version, non-native libraries followed by the
        version's JAR file.

        :raises LibraryNotFoundError: If a library is not installed.
        :raises JarNotFoundError: If the version's JAR file is not installed.
        """

        paths = []
        for resolved in self.resolve_libraries(features):
            if resolved.library.is_native():
                continue
            lib_path = resolved.path(libraries_dir)
            if not lib_path.is_file():
                raise LibraryNotFoundError(resolved.spec, lib_path)
            paths.append(str(lib_path.absolute()))

        jar_path = manager.primary_jar_path(self.version_jar())
        if not jar_path.is_file():
            raise JarNotFoundError(self.id, jar_path)
        paths.append(str(jar_path.absolute()))

        return separator.join(paths)

    def native_collection(self, libraries_dir: Path, *,
        features: Optional[Dict[str, bool]] = None
    ) -> NativeCollection:
        collection = NativeCollection()
        for resolved in self.resolve_libraries(features):
            if resolved.library.is_native():
                collection.add(resolved.spec, resolved.path(libraries_dir), resolved.library.extract_exclude)
        return collection

    def __str__(self) -> str:
        return self.id

    def __repr__(self) -> str:
        return f"<MinecraftVersion {self.id}>"


class GameOption:
    """A game option, which is a name with an optional value such as `--demo` or
    `--username Steve`.
    """

    __slots__ = "name", "value"

    def __init__(self, name: str, value: Optional[str] = None) -> None:
        self.name = name
        self.value = value

    def to_args(self) -> List[str]:
        return [self.name] if self.value is None else [self.name, self.value]

    def __eq__(self, other) -> bool:
        return isinstance(other, GameOption) and (self.name, self.value) == (other.name, other.value)

    def __repr__(self) -> str:
        return f"<GameOption {' '.join(self.to_args())}>"


class VersionManager:
    """Access to the versions directory of the game, each version being stored in its
    own directory with its metadata file and its JAR file.
    """

    def __init__(self, versions_dir: Path) -> None:
        self.versions_dir = versions_dir

    def version_dir(self, id: str) -> Path:
        return self.versions_dir / id

    def metadata_file(self, id: str) -> Path:
        return self.version_dir(id) / f"{id}.json"

    def primary_jar_path(self, id: str) -> Path:
        return self.version_dir(id) / f"{id}.jar"

    def natives_path(self, id: str) -> Path:
        """Directory where the native libraries of the given version are extracted.
        """
        return self.version_dir(id) / f"{id}-natives-{minecraft_os}-{minecraft_arch_bits}"

    def metadata_exists(self, id: str) -> bool:
        return self.metadata_file(id).is_file()

    def list_versions(self) -> Iterator[str]:
        """Iterate over the identifiers of installed versions.
        """
        if self.versions_dir.is_dir():
            for version_dir in sorted(self.versions_dir.iterdir()):
                if version_dir.is_dir() and self.metadata_exists(version_dir.name):
                    yield version_dir.name

    def read_metadata(self, id: str) -> Any:
        """Read the raw metadata of a version, without its parents.

        :raises VersionNotFoundError: If the metadata file doesn't exist.
        :raises ValueError: If the metadata file is not valid JSON.
        """
        metadata_file = self.metadata_file(id)
        try:
            with metadata_file.open("rt", encoding="utf-8") as fp:
                return json.load(fp)
        except FileNotFoundError:
            raise VersionNotFoundError(id, metadata_file)
        except JSONDecodeError as error:
            raise ValueError(f"metadata of {id}: invalid json: {error}")

    def version_of(self, id: str) -> MinecraftVersion:
        """Load the given version and all of its parents.

        :raises VersionNotFoundError: If the version or one of its parents is missing.
        :raises TooMuchParentsError: If the hierarchy is too deep (or cyclic).
        """

        hierarchy: List[MinecraftVersion] = []
        version_id: Optional[str] = id

        while version_id is not None:

            if len(hierarchy) > MAX_PARENTS:
                raise TooMuchParentsError([v.id for v in hierarchy])

            version = MinecraftVersion.from_json(version_id, self.read_metadata(version_id))
            if len(hierarchy):
                hierarchy[-1].parent = version

            hierarchy.append(version)
            version_id = version.inherits_from

        return hierarchy[0]

    def extract_natives(self, id: str, libraries_dir: Path) -> List[str]:
        version = self.version_of(id)
        return version.native_collection(libraries_dir).extract_to(self.natives_path(id))

    def check_metadata(self, id: str, manifest: "VersionManifest") -> bool:
        """Return false if the metadata file is missing or doesn't match the sha1 given
        by the manifest. Versions unknown to the manifest, or a manifest that can't be
        requested, are considered valid so that installed versions work offline.
        """

        try:
            manifest_version = manifest.get_version(id)
        except HttpError:
            return self.metadata_exists(id)

        if manifest_version is None:
            return self.metadata_exists(id)

        expected_sha1 = manifest_version.get("sha1")
        try:
            with self.metadata_file(id).open("rb") as metadata_fp:
                return expected_sha1 is None or calc_input_sha1(metadata_fp) == expected_sha1
        except OSError:
            return False

    def fetch(self, id: str, manifest: "VersionManifest") -> None:
        """Fetch the metadata of a version from the manifest and write it to the
        metadata file.

        :raises VersionNotFoundError: If the version is not in the manifest.
        :raises HttpError: If the manifest or metadata can't be requested.
        """

        manifest_version = manifest.get_version(id)
        if manifest_version is None:
            raise VersionNotFoundError(id, self.metadata_file(id))

        res = http_request("GET", manifest_version["url"], accept="application/json")

        # Decode first so an invalid response is never written.
        res.json()

        metadata_file = self.metadata_file(id)
        metadata_file.parent.mkdir(parents=True, exist_ok=True)
        with metadata_file.open("wb") as fp:
            fp.write(res.data)


def group_game_options(args: Iterator[str]) -> List[GameOption]:
    """Group a flat list of arguments into options: an argument starting with a dash
    is an option name, taking the next argument as value unless it's also a name.
    """

    options = []
    name: Optional[str] = None

    for arg in args:
        if arg.startswith("-"):
            if name is not None:
                options.append(GameOption(name))
            name = arg
        elif name is not None:
            options.append(GameOption(name, arg))
            name = None
        else:
            options.append(GameOption(arg))

    if name is not None:
        options.append(GameOption(name))

    return options


def interpret_rule(rules: Any, features: Dict[str, bool], path: str) -> bool:
    """Interpret a list of rules and determine if the condition is met. The last
    matching rule gives the result, no matching rule means disallowed.
    """

    if not isinstance(rules, list):
        raise ValueError(f"{path} must be a list")

    allowed = False
    for i, rule in enumerate(rules):

        if not isinstance(rule, dict):
            raise ValueError(f"{path}/{i} must be an object")

        rule_os = rule.get("os")
        if rule_os is not None and not interpret_rule_os(rule_os, f"{path}/{i}/os"):
            continue

        rule_features = rule.get("features")
        if rule_features is not None:

            if not isinstance(rule_features, dict):
                raise ValueError(f"{path}/{i}/features must be an object")

            feat_valid = True
            for feat_name, feat_expected in rule_features.items():
                if features.get(feat_name, False) != feat_expected:
                    feat_valid = False

            if not feat_valid:
                continue

        action = rule.get("action")
        if action == "disallow":
            return False
        elif action == "allow":
            allowed = True
        else:
            raise ValueError(f"{path}/{i}/action must be 'allow' or 'disallow'")

    return allowed


def interpret_rule_os(rule_os: Any, path: str) -> bool:

    if not isinstance(rule_os, dict):
        raise ValueError(f"{path} must be an object")

    os_name = rule_os.get("name")
    if os_name is None or os_name == minecraft_os:
        os_arch = rule_os.get("arch")
        if os_arch is None or os_arch == minecraft_arch:
            os_version = rule_os.get("version")
            if os_version is None or re.search(os_version, platform.version()) is not None:
                return True
    return False


def interpret_args(args: Any, features: Dict[str, bool], dst: List[str], path: str) -> None:
    """Interpret a list of arguments, each either a string or an object with a value
    conditioned by rules.
    """

    if not isinstance(args, list):
        raise ValueError(f"{path} must be a list")

    for i, arg in enumerate(args):

        if isinstance(arg, str):
            dst.append(arg)
        elif isinstance(arg, dict):

            rules = arg.get("rules")
            if rules is not None:
                if not interpret_rule(rules, features, f"{path}/{i}/rules"):
                    continue

            arg_value = arg.get("value")
            if isinstance(arg_value, list):
                dst.extend(arg_value)
            elif isinstance(arg_value, str):
                dst.append(arg_value)
            else:
                raise ValueError(f"{path}/{i}/value must be a list or a string")
        else:
            raise ValueError(f"{path}/{i} must be an object or a string")


def _substitute(arg: str, strategy: ParameterStrategy) -> str:
    return arg if strategy.mapping is None else expand(arg, strategy.mapping)


class VersionNotFoundError(Exception):
    """Raised when the metadata of a version can't be found.
    """

    def __init__(self, version: str, file: Path) -> None:
        self.version = version
        self.file = file

    def __str__(self) -> str:
        return f"{self.version!r} (expected {self.file})"


class TooMuchParentsError(Exception):
    """Raised when a version hierarchy is too deep, the versions loaded so far are given.
    """

    def __init__(self, versions: List[str]) -> None:
        self.versions = versions

    def __str__(self) -> str:
        return repr(self.versions)


class LibraryNotFoundError(Exception):
    """Raised when a library needed to launch the game is not installed.
    """

    def __init__(self, lib: LibrarySpecifier, path: Path) -> None:
        self.lib = lib
        self.path = path

    def __str__(self) -> str:
        return f"{self.lib} (expected {self.path})"


class JarNotFoundError(Exception):
    """Raised when the JAR file of a version is not installed.
    """

    def __init__(self, version: str, path: Path) -> None:
        self.version = version
        self.path = path

    def __str__(self) -> str:
        return f"{self.version!r} (expected {self.path})"


# JVM arguments of versions without modern arguments.
legacy_jvm_args = [
    {
        "rules": [{"action": "allow", "os": {"name": "osx"}}],
        "value": ["-XstartOnFirstThread"]
    },
    {
        "rules": [{"action": "allow", "os": {"name": "windows"}}],
        "value": "-XX:HeapDumpPath=MojangTricksIntelDriversForPerformance_javaw.exe_minecraft.exe.heapdump"
    },
    {
        "rules": [{"action": "allow", "os": {"name": "windows", "version": "^10\\."}}],
        "value": ["-Dos.name=Windows 10", "-Dos.version=10.0"]
    },
    "-Djava.library.path=${natives_directory}",
    "-Dminecraft.launcher.brand=${launcher_name}",
    "-Dminecraft.launcher.version=${launcher_version}",
    "-Dminecraft.client.jar=${primary_jar}",
    "-cp",
    "${classpath}"
]

from pathlib import Path
import hashlib
import json
import os
import pytest

from conftest import write_version


def new_launcher(game_dir: Path, name: str = "Steve"):
    from mclaunch.launcher import builder
    from mclaunch.auth import offline
    return builder().root_dir(game_dir).auth(offline(name).auth()).jre("/opt/java/bin/java")


def preset_manifest(*versions: dict, latest: str = None):
    from mclaunch.manifest import VersionManifest
    manifest = VersionManifest()
    manifest.data = {
        "latest": {"release": latest, "snapshot": latest},
        "versions": list(versions)
    }
    return manifest


class RecordingWatcher:

    def __init__(self) -> None:
        self.events = []

    def handle(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> list:
        return [e for e in self.events if type(e) is event_type]


def test_builder(tmp_path):

    from mclaunch.launcher import builder, DEFAULT_RESOLUTION, DEFAULT_JVM_OPTIONS
    from mclaunch.auth import offline
    from mclaunch import LAUNCHER_NAME, LAUNCHER_VERSION

    auth_info = offline("Steve").auth()
    launcher = builder().root_dir(tmp_path).auth(auth_info).jre("/opt/java/bin/java").build()

    assert launcher.root_dir == tmp_path
    assert launcher.assets_dir == tmp_path / "assets"
    assert launcher.libraries_dir == tmp_path / "libraries"
    assert launcher.version_manager.versions_dir == tmp_path / "versions"
    assert launcher.jre == Path("/opt/java/bin/java")
    assert launcher.auth_info is auth_info
    assert (launcher.launcher_name, launcher.launcher_version) == (LAUNCHER_NAME, LAUNCHER_VERSION)
    assert launcher.resolution == DEFAULT_RESOLUTION
    assert launcher.jvm_options == DEFAULT_JVM_OPTIONS
    assert launcher.features() == {"is_demo_user": False, "has_custom_resolution": True}

    launcher = builder().root_dir(str(tmp_path)).auth(auth_info).jre("java") \
        .assets_dir(tmp_path / "shared_assets") \
        .libraries_dir(tmp_path / "shared_libraries") \
        .launcher("custom", "1.0") \
        .resolution(1280, 720) \
        .jvm_options(["-Xmx1G"]) \
        .build()

    assert launcher.root_dir == tmp_path
    assert launcher.assets_dir == tmp_path / "shared_assets"
    assert launcher.libraries_dir == tmp_path / "shared_libraries"
    assert (launcher.launcher_name, launcher.launcher_version) == ("custom", "1.0")
    assert launcher.resolution == (1280, 720)
    assert launcher.jvm_options == ["-Xmx1G"]


def test_builder_errors(tmp_path, monkeypatch):

    from mclaunch.launcher import builder, JvmNotFoundError
    from mclaunch.auth import offline

    auth_info = offline("Steve").auth()

    with pytest.raises(ValueError):
        builder().auth(auth_info).jre("java").build()
    with pytest.raises(ValueError):
        builder().root_dir(tmp_path).jre("java").build()
    with pytest.raises(ValueError):
        builder().resolution(0, 480)
    with pytest.raises(ValueError):
        builder().resolution(854, -1)

    monkeypatch.setattr("mclaunch.launcher.find_jre", lambda: [])
    with pytest.raises(JvmNotFoundError):
        builder().root_dir(tmp_path).auth(auth_info).build()

    monkeypatch.setattr("mclaunch.launcher.find_jre", lambda: ["/usr/lib/jvm/java-17/bin/java", "/usr/bin/java"])
    launcher = builder().root_dir(tmp_path).auth(auth_info).build()
    assert launcher.jre == Path("/usr/lib/jvm/java-17/bin/java")


def test_create(tmp_path, monkeypatch):

    from mclaunch.launcher import create
    from mclaunch.auth import offline

    monkeypatch.setattr("mclaunch.launcher.find_jre", lambda: ["/usr/bin/java"])

    launcher = create(tmp_path, offline("Steve").auth())
    assert launcher.root_dir == tmp_path
    assert launcher.jre == Path("/usr/bin/java")


def test_argument_map(game_dir):

    launcher = new_launcher(game_dir).build()
    version = launcher.version_manager.version_of("custom")
    auth_info = launcher.auth_info

    arg_map = launcher.generate_argument_map(version)

    assert arg_map["auth_player_name"] == "Steve"
    assert arg_map["profile_name"] == "Steve"
    assert arg_map["auth_uuid"] == auth_info.user_profile.uuid.hex
    assert arg_map["auth_access_token"] == auth_info.access_token
    assert arg_map["auth_session"] == auth_info.format_session()
    assert arg_map["auth_xuid"] == ""
    assert arg_map["clientid"] == ""
    assert arg_map["user_type"] == "legacy"
    assert arg_map["user_properties"] == "{}"
    assert arg_map["user_property_map"] == "[]"
    assert arg_map["version_name"] == "custom"
    assert arg_map["version_type"] == "release"
    assert arg_map["game_directory"] == str(game_dir.absolute())
    assert arg_map["assets_root"] == str((game_dir / "assets").absolute())
    assert arg_map["game_assets"] == arg_map["assets_root"]
    assert arg_map["assets_index_name"] == "1.12"
    assert arg_map["resolution_width"] == "854"
    assert arg_map["resolution_height"] == "480"
    assert arg_map["launcher_name"] == "mclaunch"
    assert arg_map["natives_directory"] == str(launcher.version_manager.natives_path("custom").absolute())
    assert arg_map["primary_jar"] == str((game_dir / "versions" / "1.12.2" / "1.12.2.jar").absolute())
    assert arg_map["library_directory"] == str((game_dir / "libraries").absolute())
    assert arg_map["classpath_separator"] == os.pathsep
    assert arg_map["classpath"].split(os.pathsep)[-1] == arg_map["primary_jar"]


def test_game_assets_dir(game_dir):

    launcher = new_launcher(game_dir).build()
    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)

    (indexes_dir / "legacy.json").write_text(json.dumps({"virtual": True, "objects": {}}))
    (indexes_dir / "broken.json").write_text("[]")

    assert launcher.game_assets_dir("legacy") == game_dir / "assets" / "virtual" / "legacy"
    assert launcher.game_assets_dir("broken") == game_dir / "assets"
    assert launcher.game_assets_dir("missing") == game_dir / "assets"
    assert launcher.game_assets_dir("") == game_dir / "assets"


def test_to_arguments_legacy(game_dir):

    from mclaunch.launcher import DEFAULT_JVM_OPTIONS

    launcher = new_launcher(game_dir).build()
    args = launcher.to_arguments("1.12.2")

    assert args.program() == "/opt/java/bin/java"
    assert args.main_class == "net.minecraft.client.main.Main"
    assert args.natives_dir == launcher.version_manager.natives_path("1.12.2")

    argv = args.args()
    main_index = argv.index("net.minecraft.client.main.Main")

    assert argv[:len(DEFAULT_JVM_OPTIONS)] == DEFAULT_JVM_OPTIONS
    assert argv[main_index - 2] == "-cp"
    assert argv[main_index - 1] == launcher.generate_argument_map(launcher.version_manager.version_of("1.12.2"))["classpath"]
    assert f"-Djava.library.path={args.natives_dir.absolute()}" in argv[:main_index]
    assert "-Dminecraft.launcher.brand=mclaunch" in argv[:main_index]

    assert argv[main_index + 1:main_index + 5] == ["--username", "Steve", "--version", "1.12.2"]
    assert argv[-4:] == ["--width", "854", "--height", "480"]
    assert argv[argv.index("--userType") + 1] == "legacy"
    assert argv[argv.index("--assetIndex") + 1] == "1.12"


def test_to_arguments_modern(game_dir):

    launcher = new_launcher(game_dir).resolution(1920, 1080).jvm_options(["-Xmx1G"]).build()
    args = launcher.to_arguments("1.13-test")

    argv = args.args()
    main_index = argv.index("net.minecraft.client.main.Main")

    assert argv[0] == "-Xmx1G"
    assert argv[main_index - 2] == "-cp"
    assert "--demo" not in argv
    assert argv[main_index + 1:] == [
        "--username", "Steve",
        "--version", "1.13-test",
        "--accessToken", launcher.auth_info.access_token,
        "--width", "1920",
        "--height", "1080",
    ]

    # Options are copies.
    args.jvm_options.clear()
    args.game_options.clear()
    assert args.args() == argv


def test_to_arguments_errors(game_dir):

    from mclaunch.versions import VersionNotFoundError, LibraryNotFoundError, JarNotFoundError
    from mclaunch.util import LibrarySpecifier

    launcher = new_launcher(game_dir).build()

    with pytest.raises(VersionNotFoundError):
        launcher.to_arguments("unknown")

    write_version(game_dir / "versions", "no-main", {"libraries": []}, jar=True)
    with pytest.raises(ValueError, match="mainClass"):
        launcher.to_arguments("no-main")

    launcher.version_manager.primary_jar_path("1.13-test").unlink()
    with pytest.raises(JarNotFoundError):
        launcher.to_arguments("1.13-test")

    (game_dir / "libraries" / LibrarySpecifier.from_str("com.example:extra:1.0").file_path()).unlink()
    with pytest.raises(LibraryNotFoundError):
        launcher.to_arguments("custom")


class FakePopen:

    instances = []

    def __init__(self, args, **kwargs) -> None:
        self.args = args
        self.kwargs = kwargs
        FakePopen.instances.append(self)


def test_start(game_dir, monkeypatch):

    from mclaunch.util import minecraft_os

    FakePopen.instances = []
    monkeypatch.setattr("mclaunch.launcher.Popen", FakePopen)

    launcher = new_launcher(game_dir).build()
    args = launcher.to_arguments("1.12.2")

    process = args.start()
    assert isinstance(process, FakePopen)
    assert process.args == [args.program(), *args.args()]
    assert process.kwargs == {"cwd": game_dir}

    if minecraft_os in ("linux", "osx", "windows", "freebsd"):
        assert (args.natives_dir / "liblwjgl.so").is_file()
        assert not (args.natives_dir / "META-INF").exists()

    with pytest.raises(RuntimeError):
        args.start()
    assert len(FakePopen.instances) == 1


def test_start_failure(game_dir, monkeypatch):

    def failing_popen(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setattr("mclaunch.launcher.Popen", failing_popen)

    args = new_launcher(game_dir).build().to_arguments("1.13-test")
    with pytest.raises(OSError):
        args.start()

    # The game was not started so it can be started again.
    FakePopen.instances = []
    monkeypatch.setattr("mclaunch.launcher.Popen", FakePopen)
    args.start()
    assert len(FakePopen.instances) == 1


@pytest.mark.skipif(os.name == "nt", reason="requires a posix shell")
def test_start_process(game_dir, tmp_path):

    from mclaunch.launcher import builder
    from mclaunch.auth import offline

    jre = tmp_path / "java"
    jre.write_text("#!/bin/sh\npwd > \"$(dirname \"$0\")/cwd.txt\"\nexit 3\n")
    jre.chmod(0o755)

    launcher = builder().root_dir(game_dir).auth(offline("Steve").auth()).jre(jre).build()
    process = launcher.to_arguments("1.13-test").start()

    assert process.wait() == 3
    assert Path((tmp_path / "cwd.txt").read_text().strip()).resolve() == game_dir.resolve()


def test_find_jre(tmp_path, monkeypatch):

    from mclaunch.launcher import find_jre
    from mclaunch.util import jvm_bin_filename

    java_home = tmp_path / "jdk"
    java_bin = java_home / "bin" / jvm_bin_filename
    java_bin.parent.mkdir(parents=True)
    java_bin.write_bytes(b"")

    def no_alternatives(args, **kwargs):
        raise FileNotFoundError(args[0])

    monkeypatch.setenv("JAVA_HOME", str(java_home))
    monkeypatch.setattr("mclaunch.launcher.Popen", no_alternatives)
    monkeypatch.setattr("shutil.which", lambda name: str(java_bin))

    assert find_jre() == [str(java_bin)]

    monkeypatch.setenv("JAVA_HOME", str(tmp_path / "missing"))
    monkeypatch.setattr("shutil.which", lambda name: None)
    assert find_jre() == []


def test_install_installed(game_dir):

    from mclaunch.launcher import VersionLoadingEvent, VersionFetchingEvent, VersionLoadedEvent, \
        JarFoundEvent, LibrariesResolvedEvent, AssetsResolveEvent, DownloadStartEvent

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({"objects": {}}))

    watcher = RecordingWatcher()
    launcher = new_launcher(game_dir).build()

    assert launcher.install("1.13-test", preset_manifest(), watcher=watcher) == "1.13-test"

    assert [e.version for e in watcher.of_type(VersionLoadingEvent)] == ["1.13-test"]
    assert watcher.of_type(VersionFetchingEvent) == []
    assert [e.fetched for e in watcher.of_type(VersionLoadedEvent)] == [False]
    assert len(watcher.of_type(JarFoundEvent)) == 1

    libraries_event, = watcher.of_type(LibrariesResolvedEvent)
    assert (libraries_event.class_libs_count, libraries_event.native_libs_count) == (1, 0)

    assert [(e.index_version, e.count) for e in watcher.of_type(AssetsResolveEvent)] == [("1.13", None), ("1.13", 0)]
    assert watcher.of_type(DownloadStartEvent) == []


def test_install_fetch(game_dir, monkeypatch):

    from mclaunch.launcher import VersionFetchingEvent, VersionLoadedEvent
    from mclaunch.http import HttpResponse

    metadata = {"id": "remote", "inheritsFrom": "1.13-test", "type": "release"}

    def fake_request(method, url, **kwargs):
        assert url == "https://example.com/remote.json"
        res = HttpResponse(None)
        res.status = 200
        res.data = json.dumps(metadata).encode()
        return res

    monkeypatch.setattr("mclaunch.versions.http_request", fake_request)

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({"objects": {}}))

    manifest = preset_manifest(
        {"id": "remote", "type": "release", "url": "https://example.com/remote.json"},
        latest="remote")

    watcher = RecordingWatcher()
    launcher = new_launcher(game_dir).build()

    assert launcher.install("release", manifest, watcher=watcher) == "remote"
    assert [e.version for e in watcher.of_type(VersionFetchingEvent)] == ["remote"]
    assert [(e.version, e.fetched) for e in watcher.of_type(VersionLoadedEvent)] == [("remote", True), ("1.13-test", False)]
    assert launcher.version_manager.metadata_exists("remote")

    args = launcher.to_arguments("remote")
    assert args.main_class == "net.minecraft.client.main.Main"


def test_install_refetch(game_dir, monkeypatch):

    from mclaunch.launcher import VersionFetchingEvent
    from mclaunch.http import HttpResponse
    from conftest import MODERN_METADATA

    new_data = json.dumps({**MODERN_METADATA, "type": "release"}).encode()
    requested = []

    def fake_request(method, url, **kwargs):
        requested.append(url)
        res = HttpResponse(None)
        res.status = 200
        res.data = new_data
        return res

    monkeypatch.setattr("mclaunch.versions.http_request", fake_request)

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({"objects": {}}))

    manifest = preset_manifest({
        "id": "1.13-test",
        "type": "release",
        "url": "https://example.com/1.13-test.json",
        "sha1": hashlib.sha1(new_data).hexdigest()
    })

    # The installed metadata doesn't match the manifest sha1, it is fetched again.
    watcher = RecordingWatcher()
    launcher = new_launcher(game_dir).build()
    launcher.install("1.13-test", manifest, watcher=watcher)

    assert [e.version for e in watcher.of_type(VersionFetchingEvent)] == ["1.13-test"]
    assert launcher.version_manager.metadata_file("1.13-test").read_bytes() == new_data
    assert launcher.version_manager.version_of("1.13-test").type == "release"

    watcher = RecordingWatcher()
    launcher.install("1.13-test", manifest, watcher=watcher)
    assert watcher.of_type(VersionFetchingEvent) == []
    assert len(requested) == 1


def test_install_not_found(game_dir):

    from mclaunch.versions import VersionNotFoundError

    launcher = new_launcher(game_dir).build()
    with pytest.raises(VersionNotFoundError) as error:
        launcher.install("unknown", preset_manifest())
    assert error.value.version == "unknown"


def test_install_missing_jar(game_dir):

    from mclaunch.versions import JarNotFoundError

    write_version(game_dir / "versions", "jarless", {"mainClass": "net.minecraft.client.main.Main"})

    launcher = new_launcher(game_dir).build()
    with pytest.raises(JarNotFoundError):
        launcher.install("jarless", preset_manifest())


def test_install_assets(game_dir, http_server, monkeypatch):

    from mclaunch.launcher import DownloadStartEvent, DownloadCompleteEvent

    served_dir, base_url = http_server
    monkeypatch.setattr("mclaunch.launcher.RESOURCES_URL", base_url)

    content = b"\x89PNG fake icon"
    content_hash = hashlib.sha1(content).hexdigest()
    (served_dir / content_hash[:2]).mkdir()
    (served_dir / content_hash[:2] / content_hash).write_bytes(content)

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({
        "virtual": True,
        "objects": {
            "icons/icon_16x16.png": {"hash": content_hash, "size": len(content)}
        }
    }))

    watcher = RecordingWatcher()
    launcher = new_launcher(game_dir).build()
    launcher.install("1.13-test", preset_manifest(), watcher=watcher)

    object_file = game_dir / "assets" / "objects" / content_hash[:2] / content_hash
    assert object_file.read_bytes() == content
    assert (game_dir / "assets" / "virtual" / "1.13" / "icons" / "icon_16x16.png").read_bytes() == content

    start_event, = watcher.of_type(DownloadStartEvent)
    assert start_event.entries_count == 1
    assert start_event.size == len(content)
    assert len(watcher.of_type(DownloadCompleteEvent)) == 1

    assert launcher.game_assets_dir("1.13") == game_dir / "assets" / "virtual" / "1.13"


def test_install_download_error(game_dir, http_server, monkeypatch):

    from mclaunch.download import DownloadError, DownloadResultError

    _served_dir, base_url = http_server
    monkeypatch.setattr("mclaunch.launcher.RESOURCES_URL", base_url)

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({
        "objects": {
            "missing.ogg": {"hash": "0123456789abcdef0123456789abcdef01234567", "size": 10}
        }
    }))

    launcher = new_launcher(game_dir).build()
    with pytest.raises(DownloadError) as error:
        launcher.install("1.13-test", preset_manifest())

    (entry, code), = error.value.errors
    assert entry.name == "missing.ogg"
    assert code == DownloadResultError.NOT_FOUND


def test_simple_watcher():

    from mclaunch.launcher import SimpleWatcher, JarFoundEvent, DownloadCompleteEvent

    received = []
    watcher = SimpleWatcher({JarFoundEvent: received.append})
    watcher.handle(JarFoundEvent())
    watcher.handle(DownloadCompleteEvent())

    assert len(received) == 1
    assert isinstance(received[0], JarFoundEvent)


def test_install_assets_resources_and_virtual(game_dir, http_server, monkeypatch):

    _served_dir, base_url = http_server
    monkeypatch.setattr("mclaunch.launcher.RESOURCES_URL", base_url)

    content = b"OggS fake sound"
    content_hash = hashlib.sha1(content).hexdigest()
    objects_dir = game_dir / "assets" / "objects" / content_hash[:2]
    objects_dir.mkdir(parents=True)
    (objects_dir / content_hash).write_bytes(content)

    indexes_dir = game_dir / "assets" / "indexes"
    indexes_dir.mkdir(parents=True)
    (indexes_dir / "1.13.json").write_text(json.dumps({
        "map_to_resources": True,
        "virtual": True,
        "objects": {
            "sound/step/grass1.ogg": {"hash": content_hash, "size": len(content)}
        }
    }))

    launcher = new_launcher(game_dir).build()
    launcher.install("1.13-test", preset_manifest())

    assert (game_dir / "resources" / "sound" / "step" / "grass1.ogg").read_bytes() == content
    assert (game_dir / "assets" / "virtual" / "1.13" / "sound" / "step" / "grass1.ogg").read_bytes() == content

from pathlib import Path
from typing import Optional
import json
import pytest


def pytest_addoption(parser):
    parser.addoption("--runslow", action="store_true", default=False, help="run slow tests")

def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow to run")

def pytest_collection_modifyitems(config, items):

    if config.getoption("--runslow"):
        return

    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


LEGACY_METADATA = {
    "id": "1.12.2",
    "type": "release",
    "time": "2018-02-15T16:26:45+00:00",
    "releaseTime": "2017-09-18T08:39:46+00:00",
    "mainClass": "net.minecraft.client.main.Main",
    "minecraftArguments": "--username ${auth_player_name} --version ${version_name} "
        "--gameDir ${game_directory} --assetsDir ${assets_root} --assetIndex ${assets_index_name} "
        "--uuid ${auth_uuid} --accessToken ${auth_access_token} --userType ${user_type} "
        "--versionType ${version_type}",
    "assets": "1.12",
    "assetIndex": {
        "id": "1.12",
        "url": "https://launchermeta.mojang.com/mc/assets/1.12/1584b57c1d0b1ab9f1e4f5d0e6fee49d0a8a2c5c/1.12.json",
        "sha1": "1584b57c1d0b1ab9f1e4f5d0e6fee49d0a8a2c5c",
        "size": 169014,
        "totalSize": 127003517
    },
    "libraries": [
        {
            "name": "com.mojang:patchy:1.1"
        },
        {
            "name": "org.lwjgl.lwjgl:lwjgl-platform:2.9.4-nightly-20150209",
            "natives": {
                "linux": "natives-linux",
                "freebsd": "natives-linux",
                "osx": "natives-osx",
                "windows": "natives-windows"
            },
            "extract": {
                "exclude": ["META-INF/"]
            }
        },
        {
            "name": "com.example:unknown-os-only:1.0",
            "rules": [{"action": "allow", "os": {"name": "unknown-os"}}]
        }
    ]
}

CHILD_METADATA = {
    "id": "custom",
    "inheritsFrom": "1.12.2",
    "type": "release",
    "libraries": [
        {"name": "com.example:extra:1.0"}
    ]
}

MODERN_METADATA = {
    "id": "1.13-test",
    "type": "snapshot",
    "mainClass": "net.minecraft.client.main.Main",
    "assetIndex": {
        "id": "1.13",
        "url": "https://launchermeta.mojang.com/mc/assets/1.13/1.13.json"
    },
    "arguments": {
        "game": [
            "--username", "${auth_player_name}",
            "--version", "${version_name}",
            "--accessToken", "${auth_access_token}",
            {
                "rules": [{"action": "allow", "features": {"is_demo_user": True}}],
                "value": "--demo"
            },
            {
                "rules": [{"action": "allow", "features": {"has_custom_resolution": True}}],
                "value": ["--width", "${resolution_width}", "--height", "${resolution_height}"]
            }
        ],
        "jvm": [
            {
                "rules": [{"action": "allow", "os": {"name": "osx"}}],
                "value": ["-XstartOnFirstThread"]
            },
            "-Djava.library.path=${natives_directory}",
            "-Dminecraft.launcher.brand=${launcher_name}",
            "-cp",
            "${classpath}"
        ]
    },
    "libraries": [
        {"name": "com.mojang:brigadier:1.0.17"}
    ]
}


def write_version(versions_dir: Path, version_id: str, metadata: dict, jar: bool = False) -> None:
    version_dir = versions_dir / version_id
    version_dir.mkdir(parents=True, exist_ok=True)
    (version_dir / f"{version_id}.json").write_text(json.dumps(metadata))
    if jar:
        (version_dir / f"{version_id}.jar").write_bytes(b"PK\x05\x06" + b"\x00" * 18)


def write_library(libraries_dir: Path, name: str, content: bytes = b"jar") -> Path:
    from mclaunch.util import LibrarySpecifier
    lib_file = libraries_dir / LibrarySpecifier.from_str(name).file_path()
    lib_file.parent.mkdir(parents=True, exist_ok=True)
    lib_file.write_bytes(content)
    return lib_file


def write_natives(libraries_dir: Path, library: dict, members: dict) -> Optional[Path]:
    """Write the native archive of the given library for the running system, with the
    given members (a None content is a directory).
    """

    from mclaunch.versions import Library
    from zipfile import ZipFile

    resolved = Library.from_json(library, "library").resolve()
    if resolved is None:
        return None

    archive_file = libraries_dir / resolved[0].file_path()
    archive_file.parent.mkdir(parents=True, exist_ok=True)
    with ZipFile(archive_file, "w") as archive:
        for name, content in members.items():
            if content is None:
                archive.writestr(name, b"")
            else:
                archive.writestr(name, content)

    return archive_file


@pytest.fixture
def game_dir(tmp_path):
    """A game directory with a legacy version (1.12.2), a version inheriting from it
    (custom) and a modern version (1.13-test), all of them installed.
    """

    root = tmp_path / "game"
    versions_dir = root / "versions"
    libraries_dir = root / "libraries"

    write_version(versions_dir, "1.12.2", LEGACY_METADATA, jar=True)
    write_version(versions_dir, "custom", CHILD_METADATA)
    write_version(versions_dir, "1.13-test", MODERN_METADATA, jar=True)

    write_library(libraries_dir, "com.mojang:patchy:1.1")
    write_library(libraries_dir, "com.example:extra:1.0")
    write_library(libraries_dir, "com.mojang:brigadier:1.0.17")
    write_natives(libraries_dir, LEGACY_METADATA["libraries"][1], {
        "META-INF/MANIFEST.MF": b"Manifest-Version: 1.0\n",
        "liblwjgl.so": b"\x7fELF",
        "sub/": None,
        "sub/libopenal.so": b"\x7fELF",
    })

    return root


@pytest.fixture
def http_server(tmp_path, monkeypatch):
    """Serve a temporary directory over HTTP on the loopback, the fixture value is a
    tuple of the served directory and the base URL (with a trailing slash).
    """

    from http.server import ThreadingHTTPServer, SimpleHTTPRequestHandler
    from functools import partial
    from threading import Thread

    for var in ("http_proxy", "HTTP_PROXY", "https_proxy", "HTTPS_PROXY", "all_proxy", "ALL_PROXY"):
        monkeypatch.delenv(var, raising=False)

    served_dir = tmp_path / "served"
    served_dir.mkdir()

    class QuietHandler(SimpleHTTPRequestHandler):
        def log_message(self, format, *args):
            pass

    server = ThreadingHTTPServer(("127.0.0.1", 0), partial(QuietHandler, directory=str(served_dir)))
    thread = Thread(target=server.serve_forever, daemon=True)
    thread.start()

    try:
        yield served_dir, f"http://127.0.0.1:{server.server_address[1]}/"
    finally:
        server.shutdown()
        server.server_close()

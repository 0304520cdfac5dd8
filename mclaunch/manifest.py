"""Mojang's version manifest, listing every official version with the URL of its
metadata.
"""

from pathlib import Path
import json

from .http import HttpError, http_request

from typing import Optional, Tuple, List


VERSION_MANIFEST_URL = "https://piston-meta.mojang.com/mc/game/version_manifest_v2.json"


class VersionManifest:
    """The version manifest, requested lazily on first access. When a cache file is
    given, the manifest is only downloaded again if modified, and the cached one is used
    if the server can't be reached.
    """

    def __init__(self, cache_file: Optional[Path] = None, *, url: str = VERSION_MANIFEST_URL) -> None:
        self.data: Optional[dict] = None
        self.cache_file = cache_file
        self.url = url

    def _ensure_data(self) -> dict:
        """Request the manifest if not already done.

        :raises HttpError: If the manifest can't be requested and no cache is available.
        """

        if self.data is not None:
            return self.data

        headers = {}
        cache_data = None

        if self.cache_file is not None:
            try:
                with self.cache_file.open("rt", encoding="utf-8") as cache_fp:
                    cache_data = json.load(cache_fp)
                if not isinstance(cache_data, dict):
                    cache_data = None
                elif "last_modified" in cache_data:
                    headers["If-Modified-Since"] = cache_data["last_modified"]
            except (OSError, json.JSONDecodeError):
                pass

        try:

            res = http_request("GET", self.url, headers=headers, accept="application/json")
            self.data = res.json()

            if "Last-Modified" in res.headers:
                self.data["last_modified"] = res.headers["Last-Modified"]

            if self.cache_file is not None:
                self.cache_file.parent.mkdir(parents=True, exist_ok=True)
                with self.cache_file.open("wt", encoding="utf-8") as cache_fp:
                    json.dump(self.data, cache_fp)

        except HttpError as error:
            # Status 0 is a network error, 304 means that the cache is up-to-date.
            if error.res.status in (0, 304) and cache_data is not None:
                self.data = cache_data
            else:
                raise

        return self.data

    @staticmethod
    def is_alias(version: str) -> bool:
        return version in ("release", "snapshot")

    def filter_latest(self, version: str) -> Tuple[str, bool]:
        """Replace the 'release' and 'snapshot' aliases by the latest version of this
        type.

        :return: The version identifier and true if the given one was an alias.
        """
        if self.is_alias(version):
            latest = self._ensure_data()["latest"].get(version)
            if latest is not None:
                return latest, True
        return version, False

    def get_version(self, version: str) -> Optional[dict]:
        """Get the manifest entry of a version (or alias), with its `id`, `type`, `url`
        and `sha1`.
        """
        version, _alias = self.filter_latest(version)
        for version_data in self._ensure_data()["versions"]:
            if version_data["id"] == version:
                return version_data
        return None

    def all_versions(self) -> List[dict]:
        return self._ensure_data()["versions"]

"""Authentication of the player, producing the `AuthInfo` consumed by the launcher.

Two authenticators are provided, the offline one that only needs a player name and the
Yggdrasil one that logs in against Mojang's authentication server.
"""

from uuid import UUID, uuid4, uuid5, NAMESPACE_OID
import json

from .http import HttpError, http_request

from typing import Optional, Dict, Tuple


YGGDRASIL_URL = "https://authserver.mojang.com/"


class Profile:
    """The game profile of a player: its UUID, display name and optional properties
    (such as a twitch access token for really old versions).
    """

    __slots__ = "uuid", "name", "properties"

    def __init__(self, uuid: UUID, name: str, properties: Optional[Dict[str, str]] = None) -> None:
        self.uuid = uuid
        self.name = name
        self.properties = {} if properties is None else properties

    def __str__(self) -> str:
        if not len(self.properties):
            return f"{self.name}: {self.uuid.hex}"
        return f"{self.name}: {self.uuid.hex} {json.dumps(self.properties)}"

    def __repr__(self) -> str:
        return f"<Profile {self}>"


class AuthInfo:
    """Authentication information given to the launcher in order to start the game. The
    user type is forwarded to the game's command line.
    """

    __slots__ = "access_token", "user_profile", "user_type"

    def __init__(self, access_token: str, user_profile: Profile, user_type: str = "legacy") -> None:
        self.access_token = access_token
        self.user_profile = user_profile
        self.user_type = user_type

    def format_session(self) -> str:
        """Format the session argument expected by legacy versions.
        """
        return f"token:{self.access_token}:{self.user_profile.uuid.hex}"

    def user_properties(self) -> str:
        """Format the user properties as the JSON object expected by the game, each
        property being mapped to a list of values.
        """
        return json.dumps({name: [value] for name, value in self.user_profile.properties.items()})

    def user_property_map(self) -> str:
        return json.dumps([{"name": name, "value": value} for name, value in self.user_profile.properties.items()])

    def __repr__(self) -> str:
        return f"<AuthInfo {self.user_profile}, type: {self.user_type}>"


class Authenticator:
    """Base class for authenticators, sources of credentials producing `AuthInfo`.
    """

    def auth(self) -> AuthInfo:
        """Authenticate and return the authentication info.

        :raises AuthError: If authentication failed.
        """
        raise NotImplementedError


class OfflineAuthenticator(Authenticator):
    """Offline authenticator keyed by a display name. The profile UUID is derived from
    the name so it's stable across launches, the access token is random.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def auth(self) -> AuthInfo:
        profile = Profile(uuid5(NAMESPACE_OID, self.name), self.name)
        return AuthInfo(uuid4().hex, profile, "legacy")


class YggdrasilAuthenticator(Authenticator):
    """Yggdrasil authentication, also known as "Mojang authentication". The client token
    identifies this client across requests, tokens returned by the server are bound to it.
    """

    def __init__(self, username: str, password: str, client_token: str, *,
        server_url: str = YGGDRASIL_URL
    ) -> None:
        self.username = username
        self.password = password
        self.client_token = client_token
        self.server_url = server_url

    def auth(self) -> AuthInfo:
        _, res = self.request("authenticate", {
            "agent": {
                "name": "Minecraft",
                "version": 1
            },
            "username": self.username,
            "password": self.password,
            "clientToken": self.client_token,
            "requestUser": True
        })
        return self.parse_auth_info(res)

    def refresh(self, info: AuthInfo) -> AuthInfo:
        """Refresh the given authentication, returning the new one with a new access
        token and an up-to-date profile name.
        """
        _, res = self.request("refresh", {
            "accessToken": info.access_token,
            "clientToken": self.client_token,
            "requestUser": True
        })
        return self.parse_auth_info(res)

    def validate(self, info: AuthInfo) -> bool:
        """Return true if the access token of the given info can still be used.
        """
        return self.request("validate", {
            "accessToken": info.access_token,
            "clientToken": self.client_token
        }, False)[0] == 204

    def invalidate(self, info: AuthInfo) -> None:
        self.request("invalidate", {
            "accessToken": info.access_token,
            "clientToken": self.client_token
        }, False)

    def request(self, req: str, payload: dict, raise_error: bool = True) -> Tuple[int, dict]:
        """Send a request to the given endpoint of the authentication server.

        :return: The response status and its JSON data (empty if none).
        :raises AuthError: If the request fails and `raise_error` is true.
        """
        try:
            res = http_request("POST", f"{self.server_url}{req}",
                data=json.dumps(payload).encode("utf-8"),
                accept="application/json",
                content_type="application/json")
        except HttpError as error:
            if not raise_error:
                return error.res.status, {}
            try:
                message = error.res.json()["errorMessage"]
            except (ValueError, KeyError, TypeError):
                message = str(error)
            raise AuthError(message) from error

        if not len(res.data):
            return res.status, {}
        try:
            return res.status, res.json()
        except ValueError:
            raise AuthError(f"unrecognized response: {res.data[:100]!r}")

    @classmethod
    def parse_auth_info(cls, res: dict) -> AuthInfo:
        """Build the authentication info from an authenticate or refresh response.

        :raises AuthError: If the response misses required fields.
        """
        try:
            access_token = res["accessToken"]
            selected_profile = res["selectedProfile"]
            uuid = UUID(selected_profile["id"])
            name = selected_profile["name"]
            properties = {}
            for prop in res.get("user", {}).get("properties", []):
                properties[prop["name"]] = prop["value"]
        except (KeyError, TypeError, ValueError, AttributeError):
            raise AuthError(f"unrecognized response: {json.dumps(res)}")

        if not isinstance(access_token, str) or not isinstance(name, str):
            raise AuthError(f"unrecognized response: {json.dumps(res)}")

        return AuthInfo(access_token, Profile(uuid, name, properties), "mojang")


def offline(name: str) -> OfflineAuthenticator:
    """Authenticator for offline play under the given display name.
    """
    return OfflineAuthenticator(name)


def yggdrasil(username: str, password: str, client_token: Optional[str] = None) -> YggdrasilAuthenticator:
    """Yggdrasil authenticator for the given credentials, a random client token is
    generated if not given.
    """
    return YggdrasilAuthenticator(username, password, uuid4().hex if client_token is None else client_token)


class AuthError(Exception):
    """Raised when authentication fails, the message is the one given by the server if
    any.
    """

"""
Relay State - platform-tagged OAuth state that survives the provider round trip.

The relay registers a single callback URL with the identity provider, so
the callback has no way to know which client surface started the login.
We prepend a platform tag to the caller's opaque state before sending it
to the provider and peel it off again in the callback.

Wire format:
    "<tag>|<opaque state>"     tag is "mobile" or "web"

Tags never contain the separator, so splitting on the FIRST "|" is
unambiguous: everything after it is the caller's state, separators included.
"""

from dataclasses import dataclass

from app.schemas.auth import Platform


SEPARATOR = "|"

_TAGS = {
    Platform.NATIVE: "mobile",
    Platform.WEB: "web",
}
_PLATFORMS = {tag: platform for platform, tag in _TAGS.items()}


class RelayStateError(ValueError):
    """Raised when a state string does not carry a known platform tag."""
    pass


@dataclass(frozen=True)
class RelayState:
    platform: Platform
    state: str

    def encode(self) -> str:
        return f"{_TAGS[self.platform]}{SEPARATOR}{self.state}"

    @classmethod
    def decode(cls, value: str) -> "RelayState":
        """
        Recover platform and opaque state from an encoded value.

        Raises:
            RelayStateError: Missing separator or unknown platform tag
        """
        tag, sep, state = value.partition(SEPARATOR)
        if not sep:
            raise RelayStateError("State has no platform tag")
        try:
            platform = _PLATFORMS[tag]
        except KeyError:
            raise RelayStateError(f"Unknown platform tag: {tag!r}") from None
        return cls(platform=platform, state=state)

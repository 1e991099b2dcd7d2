"""VidCloak - streaming media proxy that hides origin URLs behind opaque tokens."""

__version__ = "0.1.0"

"""Encode and decode project path ↔ project directory name.

The encoding is lossy: a dash in the original path is indistinguishable
from a path separator, so decoding is best effort.
"""

import os


def encode_path(path: str) -> str:
    """Encode a filesystem path to a project directory name.

    /home/wiz/AI/LLM → -home-wiz-AI-LLM
    """
    if not path:
        return ""
    return path.replace("/", "-").replace("\\", "-")


def decode_path(encoded: str) -> str:
    """Decode a project directory name to a filesystem path.

    -home-wiz-AI-LLM → /home/wiz/AI/LLM
    """
    if not encoded:
        return ""
    return encoded.replace("-", "/")


def format_project_path(path: str, home: str | None = None) -> str:
    """Replace the home directory prefix with ~ for display."""
    home = home if home is not None else os.path.expanduser("~")
    if home and home != "/" and (path == home or path.startswith(home + "/")):
        return "~" + path[len(home):]
    return path


def project_display_name(encoded: str, home: str | None = None) -> str:
    """Best-effort readable name for an encoded project directory.

    -home-wiz-projects-app → ~/projects/app (when home is /home/wiz)
    """
    if "-" not in encoded:
        return encoded

    home = home if home is not None else os.path.expanduser("~")
    encoded_home = encode_path(home.rstrip("/")) + "-" if home else ""
    if encoded_home and encoded_home != "-" and encoded.startswith(encoded_home):
        return "~/" + decode_path(encoded[len(encoded_home):])

    decoded = decode_path(encoded)
    if not decoded.startswith("/") and not decoded.startswith("~"):
        decoded = "~/" + decoded
    return decoded


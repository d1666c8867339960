"""Config hash for seeded-stream compatibility.

Two deployments that report the same hash produce identical output for the
same seeds. The hash covers everything that shapes seeded output: algorithm
versions, alphabets and default lengths.
"""
import hashlib
import json

from randkit.config import settings
from randkit.logic.alea import ALEA_VERSION
from randkit.logic.mash import MASH_VERSION
from randkit.logic.models import BASE64_CHARS, HEX_CHARS, UNMISTAKABLE_CHARS


def get_config_hash() -> str:
    """
    Generate hash of the output-shaping configuration.

    Returns 16-char hex hash of config snapshot.
    Used for:
    - /info configHash
    - stream responses and draw_served telemetry
    - golden vector fixtures
    """
    config_snapshot = {
        "alea_version": ALEA_VERSION,
        "mash_version": MASH_VERSION,
        "unmistakable_chars": UNMISTAKABLE_CHARS,
        "base64_chars": BASE64_CHARS,
        "hex_chars": HEX_CHARS,
        "default_id_length": settings.default_id_length,
        "default_secret_length": settings.default_secret_length,
    }
    canonical = json.dumps(config_snapshot, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode()).hexdigest()[:16]

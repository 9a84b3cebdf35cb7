"""Deterministic public aliases for new users."""

import hashlib

ADJECTIVES = (
    "Amber", "Bold", "Calm", "Clever", "Cosmic", "Crimson", "Dusky", "Gentle",
    "Golden", "Hidden", "Lucky", "Misty", "Quiet", "Rapid", "Silver", "Velvet",
)
NOUNS = (
    "Falcon", "Fern", "Fox", "Harbor", "Heron", "Lotus", "Maple", "Meadow",
    "Otter", "Pine", "Raven", "River", "Sparrow", "Tide", "Willow", "Wren",
)


def generate_pseudonym(subject_id: str) -> str:
    """Derive a stable alias like ``VelvetHeron417`` from a subject id."""
    digest = hashlib.sha256(subject_id.encode("utf-8")).digest()
    adjective = ADJECTIVES[digest[0] % len(ADJECTIVES)]
    noun = NOUNS[digest[1] % len(NOUNS)]
    number = int.from_bytes(digest[2:4], "big") % 1000
    return f"{adjective}{noun}{number:03d}"

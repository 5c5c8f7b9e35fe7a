import random
from typing import Callable

# No I or O, and no digits, so codes survive being read off a TV screen.
ROOM_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ'
ROOM_CODE_LENGTH = 4


def generate_room_code(is_taken: Callable[[str], bool], length: int = ROOM_CODE_LENGTH, rng=random) -> str:
    """Generate a short room code that no live room is using."""
    while True:
        code = ''.join(rng.choices(ROOM_CODE_ALPHABET, k=length))
        if not is_taken(code):
            return code


def normalize_room_code(raw) -> str:
    return raw.strip().upper() if isinstance(raw, str) else ''


def is_valid_room_code(code: str) -> bool:
    return len(code) == ROOM_CODE_LENGTH and all(ch in ROOM_CODE_ALPHABET for ch in code)

import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


def id_generator(prefix: str, length: int):
    """Return a factory producing ids like `<prefix>_<random chars>`."""
    def _generate() -> str:
        suffix = "".join(secrets.choice(_ALPHABET) for _ in range(length))
        return f"{prefix}_{suffix}"
    return _generate

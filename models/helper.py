import secrets
import string


_ALPHABET = string.ascii_letters + string.digits


def id_generator(prefix: str, length: int):
    """Return a factory producing random ids like `<prefix>_<length random chars>`."""

    def generate() -> str:
        return f"{prefix}_" + "".join(secrets.choice(_ALPHABET) for _ in range(length))

    return generate

"""Registry host extraction from image references.

Docker decides whether the first path component of an image reference is a
registry host or part of the repository path with a simple rule: it is a
host if it contains a ``.`` or a ``:``, or is exactly ``localhost``.

    ubuntu                          -> "" (default registry)
    library/ubuntu                  -> ""
    myregistry.example.com/app      -> "myregistry.example.com"
    myregistry.example.com:5000/app -> "myregistry.example.com:5000"
    localhost/app                   -> "localhost"

The empty string stands for the implicit default registry and is itself used
as the lookup key in the credential configuration.
"""

LOCALHOST = "localhost"


def get_repository(image: str) -> str:
    """Extract the registry host from an image reference.

    Args:
        image: Image reference, e.g. ``myregistry.example.com:5000/app:1.0``

    Returns:
        Registry host exactly as written in the reference, or an empty
        string when the image belongs to the default registry
    """
    candidate, sep, _ = image.partition("/")
    if not sep:
        return ""

    if "." in candidate or ":" in candidate or candidate == LOCALHOST:
        return candidate
    return ""

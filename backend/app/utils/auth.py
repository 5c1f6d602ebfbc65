def normalize_email(email: str) -> str:
    """Return a normalized email address for comparison and storage."""
    return (email or "").strip().lower()


def names_from_email(email: str) -> tuple[str, str]:
    """Derive placeholder first/last names from the local part of an address.

    ``jane.doe@example.com`` becomes ``("Jane", "Doe")``; a single-word local
    part yields an empty last name.
    """
    local = normalize_email(email).partition("@")[0]
    parts = [p for p in local.replace("_", ".").replace("-", ".").split(".") if p]
    if not parts:
        return "Client", ""
    first = parts[0].capitalize()
    last = " ".join(p.capitalize() for p in parts[1:])
    return first, last

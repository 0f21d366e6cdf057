def clean_flavor_text(txt: str) -> str:
    """Turn each line feed, carriage return and form feed into one space.

    Other whitespace is kept as-is.
    """
    if not isinstance(txt, str):
        txt = str(txt or '')
    return txt.replace('\f', ' ').replace('\n', ' ').replace('\r', ' ')


def capitalize_first(s: str) -> str:
    """'special-attack' -> 'Special-attack'. Only the first character changes."""
    if not s:
        return s
    return s[0].upper() + s[1:]

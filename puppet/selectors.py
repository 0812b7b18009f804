"""
Selector template expansion.
"""


def expand_template(template: str, placeholder: str, n: int) -> str:
    """
    Replace the first occurrence of placeholder in template with n.

    A template without the placeholder is returned unchanged.

    Examples:
        expand_template("item-{n}", "{n}", 3) -> "item-3"
        expand_template("static", "{n}", 3) -> "static"
    """
    return template.replace(placeholder, str(n), 1)


def has_placeholder(template: str, placeholder: str) -> bool:
    return bool(placeholder) and placeholder in template

# ABOUTME: Ordered plugin-list editing with family mutual exclusion
# ABOUTME: Works on a CST array so comments in the list survive
from dataclasses import dataclass

from mcpbridge.cst import CstArray, CstNode, CstObject, CstString


def matches_prefix(name: str, prefix: str) -> bool:
    """Check that name is prefix, or prefix followed by a segment boundary.

    ABOUTME: "family-x" matches "family-x-slim" and "family-x@1.2"
    ABOUTME: but not "family-xtra" (the boundary must not split a word)
    """
    if not name.startswith(prefix):
        return False
    rest = name[len(prefix):]
    return not rest or not (rest[0].isalnum() or rest[0] == "_")


@dataclass(frozen=True)
class PluginFamily:
    """A base plugin prefix plus variant sub-families that exclude each other.

    ABOUTME: At most one group (base or one variant) may be in the list at a time
    """
    base: str
    variants: tuple[str, ...] = ()

    def group_of(self, name: str) -> str | None:
        """Return the group prefix name belongs to, or None if outside the family.

        ABOUTME: The longest matching variant wins over the base
        """
        for variant in sorted(self.variants, key=len, reverse=True):
            if matches_prefix(name, variant):
                return variant
        if matches_prefix(name, self.base):
            return self.base
        return None


# ABOUTME: Standard oh-my-opencode and its slim build cannot be installed together
DEFAULT_PLUGIN_FAMILIES: tuple[PluginFamily, ...] = (
    PluginFamily("oh-my-opencode", variants=("oh-my-opencode-slim",)),
)


def _string_value(node: CstNode) -> str | None:
    return node.value if isinstance(node, CstString) else None


def add_entry(
    plugins: CstArray,
    name: str,
    families: tuple[PluginFamily, ...] = DEFAULT_PLUGIN_FAMILIES,
) -> bool:
    """Add name to a plugin list, enforcing family mutual exclusion.

    ABOUTME: Adding a base member drops every variant member, and vice versa
    ABOUTME: A variant keeps its own group but drops other variants
    ABOUTME: An exact duplicate is a no-op, not an error
    ABOUTME: Only registered families exclude each other (see DEFAULT_PLUGIN_FAMILIES)

    Returns:
        True if name was appended, False if it was already present
    """
    for family in families:
        group = family.group_of(name)
        if group is None:
            continue
        for node in plugins.elements():
            value = _string_value(node)
            if value is None:
                continue
            other = family.group_of(value)
            if other is not None and other != group:
                node.remove()

    if any(_string_value(node) == name for node in plugins.elements()):
        return False

    plugins.append(name)
    return True


def remove_entries_by_prefix(plugins: CstArray, prefix: str) -> int:
    """Remove every entry that is prefix or starts with prefix at a segment boundary.

    ABOUTME: Removes the list property itself from its parent once it is empty

    Returns:
        Number of entries removed
    """
    removed = 0
    for node in plugins.elements():
        value = _string_value(node)
        if value is not None and matches_prefix(value, prefix):
            node.remove()
            removed += 1

    if len(plugins) == 0 and isinstance(plugins.parent, CstObject):
        plugins.remove()

    return removed

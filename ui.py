from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich.markup import escape
from rich.tree import Tree
from datetime import datetime
from collections import Counter

from values import Kind
from utils import hex_preview

console = Console()

# Strings longer than this are cut short in the tree view
TEXT_PREVIEW = 60


def describe(value):
    """One-line label for a single value, without its children."""
    if value.kind is Kind.INTEGER:
        return Text(str(value.value), style="bold cyan")
    if value.kind is Kind.LIST:
        return Text(f"list [{len(value)}]", style="bold magenta")
    if value.kind is Kind.DICT:
        return Text(f"dict {{{len(value)}}}", style="bold blue")

    try:
        text = value.text
    except UnicodeDecodeError:
        text = None
    if text is not None and text.isprintable():
        if len(text) > TEXT_PREVIEW:
            text = text[:TEXT_PREVIEW] + "..."
        return Text(repr(text), style="green")
    return Text(f"<{len(value)} bytes> {hex_preview(value.raw)}", style="yellow")


def _key_label(key):
    try:
        label = key.decode('utf-8')
    except UnicodeDecodeError:
        return hex_preview(key)
    return label if label.isprintable() else hex_preview(key)


def build_tree(value, label="root"):
    """Builds a rich Tree mirroring the value tree."""
    tree = Tree(Text.assemble((f"{label}: ", "dim"), describe(value)))
    _add_children(tree, value)
    return tree


def _add_children(node, value):
    stack = [(node, value)]
    while stack:
        parent, current = stack.pop()
        if current.kind is Kind.LIST:
            for index, item in enumerate(current):
                child = parent.add(Text.assemble((f"[{index}] ", "dim"), describe(item)))
                stack.append((child, item))
        elif current.kind is Kind.DICT:
            for key, item in current.items():
                child = parent.add(Text.assemble((f"{_key_label(key)}: ", "bold"), describe(item)))
                stack.append((child, item))


def collect_stats(value):
    """Counts values per kind and measures the deepest container nesting."""
    counts = Counter()
    max_depth = 0
    stack = [(value, 0)]
    while stack:
        current, depth = stack.pop()
        counts[current.kind] += 1
        if current.kind is Kind.LIST:
            depth += 1
            stack.extend((item, depth) for item in current)
        elif current.kind is Kind.DICT:
            depth += 1
            stack.extend((item, depth) for item in current.values())
        max_depth = max(max_depth, depth)
    return counts, max_depth


class BencUI:
    def __init__(self):
        self.console = console

    def print_log(self, message, level="INFO"):
        """Prints a styled log message."""
        color = "green" if level == "INFO" else "red"
        if level == "WARNING": color = "yellow"

        time_str = f"[{datetime.now().strftime('%H:%M:%S')}]"
        self.console.print(f"{time_str} [bold {color}]{level}[/]: {escape(str(message))}")

    def show_tree(self, value, title="Decoded value"):
        self.console.print(Panel(build_tree(value), title=title, border_style="blue"))

    def show_summary(self, value, consumed, total):
        """Displays per-kind counts and sizes in a table."""
        counts, max_depth = collect_stats(value)

        table = Table(title="Bencode Summary", box=None)
        table.add_column("Field", style="cyan")
        table.add_column("Value", style="magenta")

        for kind in Kind:
            table.add_row(f"{kind.value} values", str(counts[kind]))
        table.add_row("max nesting", str(max_depth))
        table.add_row("bytes consumed", f"{consumed} / {total}")

        self.console.print(table)


ui = BencUI()

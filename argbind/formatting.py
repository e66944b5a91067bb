"""
Argbind help rendering (rich).

HelpFormatter turns a parser registry into a rich renderable. The parser never
formats anything itself: print_help() and format_help() delegate here, and a
custom formatter can be installed with parser.config.formatter(...).

Layout
    usage: prog [-h] [-d DEPTH] files [files ...] <command> ...

    Description paragraph.

    positional arguments:
      files               some files

    required arguments:
      -r, --root ROOT     root directory

    optional arguments:
      -h, --help          Print this help message and exit.

    <group title or name>:
      <group description>
      --first             group members (positionals first)

    commands:
      fetch               Download objects.

    Epilog paragraph.

- Grouped arguments follow the ungrouped sections, groups sorted by name.
- Every description starts at the same column: the widest label plus a gap,
  capped at the description indent. Longer labels push their description to
  the next line. Descriptions are re-wrapped to the text width and keep the
  paragraphs of the source text.

Palette keys
- usage-label, program-name, usage-section, description-section, epilog-section
- section-label, group-description, argument-description
- option-name, positional-name, metavar, command-name

Customization
- Define a mapping named __styles__ in __main__ to override any palette entry.
"""
import pathlib
import sys
from collections import defaultdict, deque

from rich.console import Console, Group
from rich.text import Lines, Text

from .utils import *


def program_name(parser, /):
    """
    The configured program name, or the basename of sys.argv[0].
    """
    return parser.config.settings.program or pathlib.Path(sys.argv[0] or "prog").name


def _styler():
    styles = defaultdict(str, {
        # === Head sections ===
        "usage-label": "bold #00E6FF",  # CYAN → signature info color
        "program-name": "bold #FF4D94",  # MAGENTA-PINK → brand pop
        "usage-section": "bold #36C5F0",  # SKY-BLUE → softer than cyan
        "description-section": "italic #A3A3A3",  # Neutral gray
        "epilog-section": "#737373",  # Dim footer gray

        # === Sections / arguments ===
        "section-label": "bold #FFFFFF",
        "group-description": "italic #9CA3AF",
        "argument-description": "#9CA3AF",

        # === Names ===
        "option-name": "bold #00E6FF",
        "positional-name": "bold #22C55E",
        "metavar": "bold #FFD600",
        "command-name": "bold #36C5F0",
    } | getattr(__import__("__main__"), "__styles__", {}))
    return styles.__getitem__


class HelpFormatter:
    """
    Default help formatter.

    Parameters
    - width: maximum text width (capped by the console width when printing).
    - indent: maximum column at which descriptions start.
    """
    padding = 2

    width = mirror("width")
    indent = mirror("indent")

    def __init__(self, *, width=Unset, indent=Unset):
        if not isinstance(width := coalesce(width, 80), int) or width < 20:
            raise ValueError("help width must be an integer of at least 20")
        if not isinstance(indent := coalesce(indent, 24), int) or not 0 < indent < width:
            raise ValueError("description indent must be a positive integer below the width")
        self._width = width
        self._indent = indent

    # -- labels -----------------------------------------------------------------

    def _usage_item(self, option, style):
        if option.positional:
            item = Text(option.name, style("positional-name"))
            if option.max_args < 0 or option.max_args > 1:
                item.append(" ...")
            if not option.required or option.min_args == 0:
                item = Text.assemble("[", item, "]")
            return item

        item = Text(option.short_name or option.long_name, style("option-name"))
        if arguments := option.arguments:
            item.append(" ").append(arguments, style("metavar"))
        if not option.required:
            item = Text.assemble("[", item, "]")
        return item

    def _label_segments(self, option, style):
        if option.positional:
            return deque([Text(option.name, style("positional-name"))])

        names = [name for name in (option.short_name, option.long_name) if name]
        segments = deque(Text(name + "," * (index < len(names) - 1), style("option-name"))
                         for index, name in enumerate(names))
        if arguments := option.arguments:
            segments.append(Text(arguments, style("metavar")))
        return segments

    def _wrap_segments(self, segments, offset, width):
        """
        Join segments with spaces, starting new lines (hanging indent) when
        the width would be exceeded.
        """
        try:
            lines = Lines([segments.popleft()])
        except IndexError:
            return Lines()

        while segments:
            limit = width - offset if len(lines) == 1 else width - offset * 4
            if len(lines[-1]) + 1 + len(segment := segments.popleft()) > limit:
                lines.append(segment)
            else:
                lines[-1].append(Text(" ") + segment)
        return lines

    # -- sections ---------------------------------------------------------------

    def _usage(self, parser, width, style):
        usage = Text()
        usage.append("usage", style("usage-label")).append(":").append(" ")

        if explicit := parser.config.settings.usage:
            return usage.append(explicit, style("usage-section"))

        usage.append(program_name(parser), style("program-name"))
        offset = len(usage) + 1

        items = deque(self._usage_item(option, style) for option in parser.options)
        items.extend(self._usage_item(option, style) for option in parser.positionals)
        if parser.commands:
            items.append(Text("<command> ...", style("command-name")))
        if not items:
            return usage

        usage.append(" ")
        lines = Lines([items.popleft()])
        while items:
            if len(lines[-1]) + 1 + len(item := items.popleft()) > width - offset:
                lines.append(item)
            else:
                lines[-1].append(Text(" ") + item)

        usage.append(lines.pop(0))
        for line in lines:
            usage.append("\n").append(" " * offset).append(line)
        return usage

    def _entry(self, label, help, column, width, console, style):
        entry = Text()
        lines = label if isinstance(label, Lines) else Lines([label])
        entry.append(" " * self.padding).append(lines[0])
        for line in lines[1:]:
            entry.append("\n").append(" " * self.padding * 4).append(line)

        if not help:
            return entry

        description = Text(help, style("argument-description"))
        wrapped = description.wrap(console, width - column)
        if len(lines) > 1 or self.padding + len(lines[0]) + 2 > column:
            entry.append("\n").append(" " * column)
        else:
            entry.append(" " * (column - self.padding - len(lines[0])))
        try:
            entry.append(wrapped.pop(0))
        except IndexError:
            pass
        for line in wrapped:
            entry.append("\n")
            if line:
                entry.append(" " * column).append(line)
        return entry

    def _section(self, heading, entries, column, width, console, style, description=""):
        section = Text()
        section.append(heading, style("section-label")).append(":")
        if description:
            for line in Text(description, style("group-description")).wrap(console, width - self.padding):
                section.append("\n").append(" " * self.padding).append(line)
        for label, help in entries:
            section.append("\n").append(self._entry(label, help, column, width, console, style))
        return section

    def format(self, parser, /, console=Unset):
        """
        Build the help renderable for `parser`.

        Parameters
        - parser: the ArgumentParser to describe.
        - console: the console the result will be printed on (only used for
          its width and text wrapping).
        """
        if console is Unset:
            console = Console(width=self._width)
        width = min(self._width, console.width)
        style = _styler()
        settings = parser.config.settings

        # Split arguments into the default sections and the named groups
        ungrouped = {"positional arguments": [], "required arguments": [], "optional arguments": []}
        grouped = {}
        for option in parser.positionals:
            if option.group is None:
                ungrouped["positional arguments"].append(option)
            else:
                grouped.setdefault(option.group.name, []).append(option)
        for option in parser.options:
            if option.group is not None:
                grouped.setdefault(option.group.name, []).append(option)
            elif option.required:
                ungrouped["required arguments"].append(option)
            else:
                ungrouped["optional arguments"].append(option)

        # Labels are wrapped to the width; descriptions share a single column
        labels = {
            option: self._wrap_segments(self._label_segments(option, style), self.padding, width)
            for option in (*parser.positionals, *parser.options)
        }
        widest = max((len(lines[0]) for lines in labels.values() if len(lines) == 1), default=0)
        widest = max([widest, *(len(name) for name in parser.commands)])
        column = min(self.padding + widest + 2, self._indent)

        renders = [self._usage(parser, width, style).append("\n")]

        if settings.description:
            renders.append(Text(settings.description, style("description-section")).append("\n"))

        for heading, options in ungrouped.items():
            if options:
                entries = [(labels[option], option.help) for option in options]
                renders.append(self._section(heading, entries, column, width, console, style).append("\n"))

        groups = parser.groups
        for name in sorted(grouped):
            group = groups[name]
            entries = [(labels[option], option.help) for option in grouped[name]]
            renders.append(self._section(
                group.heading, entries, column, width, console, style, group.description
            ).append("\n"))

        if commands := parser.commands:
            entries = [(Text(name, style("command-name")), command.help) for name, command in commands.items()]
            renders.append(self._section("commands", entries, column, width, console, style).append("\n"))

        if settings.epilog:
            renders.append(Text(settings.epilog, style("epilog-section")).append("\n"))

        renders[-1].rstrip()
        return Group(*renders)


__all__ = (
    "HelpFormatter",
    "program_name",
)

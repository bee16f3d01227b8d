#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
Console formatting for the secrets manager cli.
Provides consistent colors, prompts, and boxed messages using click.
"""

import os
from typing import Dict, List, Mapping, Optional

import click

from secretops.records import Severity


class Strings:

    @classmethod
    def get_terminal_width(cls, max_width: int = 80) -> int:
        """
        Get the current terminal width, with a maximum limit.

        Args:
            max_width (int): Maximum width to return, defaults to 80

        Returns:
            int: Terminal width or max_width, whichever is smaller
        """
        try:
            term_width = os.get_terminal_size().columns
            return min(term_width, max_width)
        except OSError:
            return max_width

    @classmethod
    def break_lines(cls, string: str, indent: str = "", break_at: int = 80) -> str:
        """
        Break a string into lines no longer than specified width, breaking only on whitespace.

        Args:
            string (str): The string to break into lines
            indent (str): String to prepend to each new line
            break_at (int): Maximum line length before breaking

        Returns:
            str: Formatted string with appropriate line breaks
        """
        lines = []
        line = ""
        break_at = cls.get_terminal_width(break_at)

        for word in string.split(" "):
            if line and len(line) + len(word) >= break_at:
                lines.append(line.rstrip())
                line = indent
            line += word + " "

        lines.append(line.rstrip())
        return "\n".join(lines)

    @staticmethod
    def mask(value: str, show: int = 4) -> str:
        """Hide all but the last `show` characters of a value"""
        if not value:
            return ""
        if len(value) <= show:
            return "*" * len(value)
        return ("*" * (len(value) - show)) + value[-show:]


# =============================================================================
# ----- TERMINAL COLORS -------------------------------------------------------
# =============================================================================

class Colorize:

    PROMPT = "cyan"
    OPTION = "magenta"
    OUTPUT = "green"
    OUTPUT_VALUE = "yellow"
    SUCCESS = "green"
    ERROR = "red"
    WARNING = "yellow"
    INFO = "blue"
    BOX_TEXT = "white"

    @classmethod
    def configure(cls, colors: Mapping[str, str]) -> None:
        """Override colors from the [colors] settings table (keys like 'prompt', 'box_text')"""
        for key, value in colors.items():
            attr = key.upper()
            if hasattr(cls, attr) and value:
                setattr(cls, attr, value)

    @classmethod
    def prompt(cls, prompt_text: str, default_value: str, value_type: type = str,
               show_default: bool = False, hide_input: bool = False) -> str:
        """
        Format an interactive prompt with consistent styling.

        Args:
            prompt_text (str): The prompt text to display
            default_value (str): Default value if user enters nothing
            value_type (type): Expected type of the input value
            show_default (bool): Whether to show default value in prompt
            hide_input (bool): Do not echo what the user types

        Returns:
            str: User's input or default value
        """
        if default_value != '' and not hide_input:
            formatted_text = click.style(f"{prompt_text} [", fg=cls.PROMPT, bold=True) + \
                            click.style(f"{default_value}", fg=cls.OPTION) + \
                            click.style("]", fg=cls.PROMPT, bold=True)
        else:
            formatted_text = click.style(f"{prompt_text}", fg=cls.PROMPT, bold=True)

        return click.prompt(formatted_text, type=value_type, default=default_value,
                            show_default=show_default, hide_input=hide_input)

    @classmethod
    def question(cls, question_text: str) -> str:
        """Format a question with consistent styling"""
        return click.style(f"{question_text} ", fg=cls.PROMPT, bold=True)

    @classmethod
    def option(cls, option_text: str) -> str:
        """Format an option with consistent styling"""
        return click.style(f"{option_text} ", fg=cls.OPTION)

    @classmethod
    def output_with_value(cls, response_text: str, response_value: str) -> str:
        """Format a label followed by its value"""
        return click.style(f"{response_text.strip()} ", fg=cls.OUTPUT, bold=True) + \
            click.style(f"{response_value}", fg=cls.OUTPUT_VALUE)

    @classmethod
    def output_bold(cls, response_text: str, fg: Optional[str] = None) -> str:
        return click.style(f"{response_text} ", fg=fg or cls.OUTPUT, bold=True)

    @classmethod
    def output(cls, response_text: str) -> str:
        return click.style(f"{response_text} ", fg=cls.OUTPUT)

    @classmethod
    def success(cls, response_text: str) -> str:
        return click.style(f"{response_text} ", fg=cls.SUCCESS)

    @classmethod
    def error(cls, response_text: str) -> str:
        return click.style(f"{response_text} ", fg=cls.ERROR, bold=True)

    @classmethod
    def warning(cls, response_text: str) -> str:
        return click.style(f"{response_text} ", fg=cls.WARNING, bold=True)

    @classmethod
    def info(cls, response_text: str) -> str:
        return click.style(f"{response_text} ", fg=cls.INFO, bold=True)

    @classmethod
    def severity(cls, severity: Severity, response_text: str) -> str:
        """Format a one-line outcome summary with a [SEVERITY] label"""
        label = f"[{severity.value.upper()}] {response_text}"
        if severity is Severity.ERROR:
            return cls.error(label)
        if severity is Severity.WARNING:
            return cls.warning(label)
        return cls.success(label)

    @classmethod
    def divider(cls, char: str = '-', num: int = 80, *, fg: Optional[str] = None) -> str:
        """Create a formatted divider line"""
        return click.style(f"{char * Strings.get_terminal_width(num)}", fg=fg or cls.OUTPUT, bold=True)

    @classmethod
    def box_warning(cls, sections: List[Dict], *, width=80) -> None:
        # black on yellow for contrast
        cls.box(sections, width=width, fg="black", bg=cls.WARNING)

    @classmethod
    def box(cls, sections: List[Dict], *, width=80, fg: Optional[str] = None, bg: Optional[str] = None) -> None:
        """
        Display sections in a box.

        Args:
            sections (List[Dict]): List of sections, each containing:
                - header (str, optional): Section header
                - text (str): Section content
            width (int): Maximum width of box
            fg (str): Foreground color
            bg (str): Background color
        """
        fg = fg or cls.BOX_TEXT
        bg = bg or cls.INFO
        width = Strings.get_terminal_width(width)

        for i, section in enumerate(sections, start=1):
            header = section.get("header", None)
            if header:
                if i > 1:
                    cls._box_line(' ' * width, fg, bg)
                text = f"~~~~~~ {header} "
                cls._box_line(text + "~" * max(0, width - len(text)), fg, bg)
            else:
                cls._box_line('~' * width, fg, bg)
            for line in Strings.break_lines(section.get("text", ""), break_at=width).split('\n'):
                cls._box_line(f"{line:<{width}}", fg, bg, bold=False)
        cls._box_line('~' * width, fg, bg)

    @staticmethod
    def _box_line(text: str, fg: str, bg: str, bold: bool = True) -> None:
        click.echo(click.style(text, fg=fg, bg=bg, bold=bold))

"""Interactive OGNL parsing REPL, powered by prompt_toolkit."""

from __future__ import annotations

import re
import sys
from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .fragment import to_ognl
from .lexer_rd import tokenize
from .parser_rd import MAX_PARSE_ITERATIONS, parse_top_level
from .repl_highlight import OgnlLexer
from .token_types import TT

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Slash commands: name => (description, argument_hint).
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/tokens": ("Toggle the token stream view", "[on|off]"),
    "/fragment": ("Toggle the OGNL fragment view", "[on|off]"),
}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


class _SlashCompleter(Completer):
    """Autocomplete slash commands on the prompt."""

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, hint) in _SLASH_CMDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _toggle(views: dict[str, bool], name: str, arg: str) -> bool:
    """Set or flip one view flag; False when *arg* is not understood."""
    if arg.lower() in _ON:
        views[name] = True
    elif arg.lower() in _OFF:
        views[name] = False
    elif arg == "":
        views[name] = not views[name]
    else:
        return False
    return True


def _handle_slash(line: str, views: dict[str, bool]) -> bool:
    """Handle slash commands. Returns True if the line was a command."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd in ("/tokens", "/fragment"):
        name = cmd[1:]
        if not _toggle(views, name, arg):
            print(f"Usage: {cmd} [on|off]", file=sys.stderr)
            return True

        state = "on" if views[name] else "off"
        print(f"{name.capitalize()} view: {state}")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def format_tokens(source: str) -> str:
    """One token per line: KIND 'raw' line:column."""
    lines = []
    for tok in tokenize(source):
        if tok.type == TT.EOF:
            break
        text = f"{tok.type.name:<10} {tok.raw!r} {tok.line}:{tok.column}"
        if tok.error:
            text += f"  ({tok.error})"
        lines.append(text)
    return "\n".join(lines)


def show(text: str, views: dict[str, bool], max_iterations: int = MAX_PARSE_ITERATIONS) -> bool:
    """Parse *text* and print the enabled views. Returns True on a clean parse."""
    if views.get("tokens"):
        print(format_tokens(text))

    ast, errors = parse_top_level(text, max_iterations=max_iterations)

    for diag in errors:
        print(f"Error: {diag}", file=sys.stderr)

    if errors or ast is None:
        return False

    print(ast.pretty(), end="")
    if views.get("fragment"):
        print(to_ognl(ast))
    return True


def repl(max_iterations: int = MAX_PARSE_ITERATIONS) -> None:
    """Interactive read-parse-print loop with prompt_toolkit."""
    views = {"tokens": False, "fragment": False}

    history = InMemoryHistory()
    lexer = OgnlLexer()

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_SlashCompleter(),
        complete_while_typing=True,
        key_bindings=bindings,
    )

    print("ognl-ast repl: Ctrl-D to exit, / for commands")

    while True:
        try:
            text = session.prompt("ognl> ")
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        # Slash command?
        if _handle_slash(text, views):
            continue

        show(text, views, max_iterations=max_iterations)

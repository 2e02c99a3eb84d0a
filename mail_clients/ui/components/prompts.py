"""User prompt components."""

from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from mail_clients.utils.console import get_console


class InputPrompt:
    """Single line text input.

    Used by: the console client menu and the send form.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console or get_console()

    def ask(self, message: str, default: str = "") -> Optional[str]:
        """Ask for one line of text.

        Args:
            message: Prompt message
            default: Value returned when the user just presses Enter

        Returns:
            User input, or None if input was cancelled or closed
        """
        try:
            return Prompt.ask(
                message,
                default=default,
                show_default=bool(default),
                console=self.console,
            )
        except (KeyboardInterrupt, EOFError):
            return None

from rich.console import Console
from rich.markup import escape
from rich.theme import Theme

custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})

console = Console(theme=custom_theme)


def print_success(message: str) -> None:
    console.print(f"[success]✔ {escape(message)}[/success]")


def print_warning(message: str) -> None:
    console.print(f"[warning]! {escape(message)}[/warning]")


def print_error(message: str) -> None:
    console.print(f"[error]✘ {escape(message)}[/error]")

"""CLI entry point: registers all subcommands."""

import typer

app = typer.Typer(
    name="smart-push",
    help="smart-push - Risk-based pre-push validation",
    add_completion=False,
    rich_markup_mode="rich",
)


# Import subcommands to register them
from .main import main as _main_callback  # noqa: F401, E402
from .run import run as _run  # noqa: F401, E402
from .explain import explain as _explain  # noqa: F401, E402
from .tiers import tiers as _tiers  # noqa: F401, E402

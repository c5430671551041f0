from __future__ import annotations

import click

from fetchprint.fetcher import fetch_and_print


@click.command(
    context_settings={"ignore_unknown_options": True, "allow_extra_args": True}
)
def main() -> None:
    """GET the sample post and print its status line and body."""
    # Stray arguments are ignored and failures are reported on stdout, so the
    # exit status stays 0.
    fetch_and_print()


if __name__ == "__main__":
    main()

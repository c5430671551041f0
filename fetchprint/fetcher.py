"""
The fetch-and-print operation: one GET, one full body read, two lines out.
"""

from __future__ import annotations

import logging

import click

from fetchprint.client import Client
from fetchprint.errors import ReadError, TransportError

logger = logging.getLogger(__name__)

TARGET_URL = "https://jsonplaceholder.typicode.com/posts/1"


def fetch_and_print(client: Client | None = None, url: str = TARGET_URL) -> bool:
    """
    GET ``url`` and print its status line and body to stdout.

    Prints ``Error: ...`` if no response is obtained, or
    ``Error reading response body: ...`` if the body cannot be drained. The
    status line is printed only after the whole body has been read.

    Returns:
        True if the status and body were printed, False on either failure.
    """
    client = client or Client()

    try:
        response = client.get(url)
    except TransportError as exc:
        logger.debug("Request to %s failed", url, exc_info=True)
        click.echo(f"Error: {exc}")
        return False

    with response:
        try:
            response.read()
        except ReadError as exc:
            logger.debug("Reading body from %s failed", url, exc_info=True)
            click.echo(f"Error reading response body: {exc}")
            return False

    click.echo(f"Response Status: {response.status}")
    click.echo(f"Response Body: {response.text}")
    return True

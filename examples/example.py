#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2025 Copilot-for-Consensus contributors

"""Example usage of the rollbar_reporter module.

Set ROLLBAR_ACCESS_TOKEN to send items to a real project. Without it the
example writes every item to the console instead.
"""

import logging
import os

import rollbar_reporter
from rollbar_reporter import Configuration, ConsoleTransport


def main():
    """Demonstrate reporting functionality."""
    logging.basicConfig(level=logging.DEBUG)

    config = Configuration.from_env()
    if not config.access_token:
        print("ROLLBAR_ACCESS_TOKEN not set, printing items instead of sending them")
        rollbar_reporter.set_transport(ConsoleTransport())
        config.access_token = "console"

    rollbar_reporter.replace_configuration(config)
    rollbar_reporter.set_environment(os.getenv("ROLLBAR_ENVIRONMENT", "development"))
    rollbar_reporter.set_code_version("0.1.0")
    rollbar_reporter.set_custom("example", True)

    # Example 1: Plain message with extras attached to the body
    rollbar_reporter.report_message(
        "This is an example message",
        level="debug",
        extra={"foo": "bar"},
        context="example#main",
    )

    # Example 2: Handled exception with custom data
    try:
        raise OSError("Some error")
    except OSError:
        rollbar_reporter.report_exception(level="critical", custom={"owner": "Bob"})

    # Example 3: Report anything left uncaught, then wait for delivery
    rollbar_reporter.handle_panics()
    rollbar_reporter.shutdown()


if __name__ == "__main__":
    main()

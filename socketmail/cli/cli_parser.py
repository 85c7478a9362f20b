"""Argument parser configuration for the socketmail CLI"""

import argparse


def parse_variable(value: str) -> tuple[str, str]:
    """Parse a ``name=value`` template variable."""
    name, sep, content = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"Expected name=value, got '{value}'")
    return name, content


## Argument Adding Utilities


def add_message_arguments(parser: argparse.ArgumentParser) -> None:
    """Add sender, recipient and subject arguments."""

    message_group = parser.add_argument_group("message", "Envelope and headers")

    message_group.add_argument(
        "--to",
        action="append",
        required=True,
        metavar="ADDRESS",
        help="Recipient address (repeat for several)"
    )
    message_group.add_argument(
        "--cc",
        action="append",
        default=[],
        metavar="ADDRESS",
        help="CC address (repeat for several)"
    )
    message_group.add_argument(
        "--from",
        dest="from_address",
        metavar="ADDRESS",
        help="Sender address (default: message.from_address from config)"
    )
    message_group.add_argument(
        "--from-name",
        metavar="NAME",
        help="Sender display name"
    )
    message_group.add_argument(
        "--reply-to",
        metavar="ADDRESS",
        help="Reply-To address (default: sender address)"
    )
    message_group.add_argument(
        "--subject",
        help="Subject line (default: message.default_subject from config)"
    )


def add_body_arguments(parser: argparse.ArgumentParser) -> None:
    """Add plain text and HTML body arguments."""

    body_group = parser.add_argument_group("body", "Plain text and optional HTML content")

    text_source = body_group.add_mutually_exclusive_group(required=True)
    text_source.add_argument("--text", help="Plain text body")
    text_source.add_argument("--text-file", metavar="PATH", help="Read the plain text body from a file")

    html_source = body_group.add_mutually_exclusive_group()
    html_source.add_argument("--html", help="HTML body")
    html_source.add_argument("--html-file", metavar="PATH", help="Read the HTML body from a file")
    html_source.add_argument(
        "--template",
        metavar="PATH",
        help="Render an HTML template with {{ $name }} placeholders"
    )

    body_group.add_argument(
        "--var",
        action="append",
        default=[],
        type=parse_variable,
        metavar="NAME=VALUE",
        help="Template variable (repeat for several)"
    )


def add_server_arguments(parser: argparse.ArgumentParser) -> None:
    """Add SMTP endpoint, credentials and session behaviour arguments."""

    server_group = parser.add_argument_group("server", "Override config.json smtp settings")

    server_group.add_argument("--host", help="SMTP server host")
    server_group.add_argument("--port", type=int, help="SMTP server port (implicit TLS)")
    server_group.add_argument("--username", help="AUTH LOGIN username")
    server_group.add_argument(
        "--password-env",
        metavar="VAR",
        help="Name of an environment variable holding the password"
    )
    server_group.add_argument(
        "--client-id",
        help="Identifier sent with EHLO"
    )
    server_group.add_argument(
        "--strict",
        action="store_true",
        help="Fail on the first 4xx/5xx server reply"
    )
    server_group.add_argument(
        "--quiet",
        action="store_true",
        help="Do not print the SMTP transcript"
    )


## Parser Setup


def setup_argument_parser() -> argparse.ArgumentParser:
    """Configure and return the argument parser with all subcommands"""

    parser = argparse.ArgumentParser(
        prog="socketmail",
        description="Send email by speaking SMTP directly over an implicit-TLS socket."
    )
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Configuration file (default: ~/.socketmail/config.json)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    send_parser = subparsers.add_parser(
        "send",
        help="Compose and send one email",
        description="Compose a plain text or multipart/alternative email and send it"
    )
    add_message_arguments(send_parser)
    add_body_arguments(send_parser)
    add_server_arguments(send_parser)

    return parser

"""Command-line interface for socketmail - builds a message from arguments and sends it"""

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

from socketmail.core.email.smtp.constants import ReplyMode
from socketmail.core.mailer import MailSender
from socketmail.core.models.mail import MailBuilder, MailConfiguration
from socketmail.utils.config_manager import ConfigManager
from socketmail.utils.console import print_error, print_success, print_transcript_event
from socketmail.utils.errors import (
    ErrorHandler,
    FileSystemError,
    MissingConfigError,
    SocketMailError,
    format_error_message,
)
from socketmail.utils.logging import get_logger, init_logging

from .cli_parser import setup_argument_parser

logger = get_logger(__name__)


def _read_file(path: str) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise FileSystemError(f"Failed to read {path}", details={"path": path}) from e


def build_configuration(
    args: argparse.Namespace, config_manager: ConfigManager
) -> MailConfiguration:
    """Merge command-line arguments over the configured defaults."""
    builder = MailBuilder(**config_manager.mail_defaults())
    message = config_manager.config.message

    from_address = args.from_address or message.from_address
    from_name = args.from_name or message.from_name
    if from_address and from_name:
        builder.set_from(from_name, from_address)
    elif from_address:
        builder.set_from(from_address)

    builder.set_to(args.to)
    if args.cc:
        builder.set_cc(args.cc)
    if args.reply_to:
        builder.set_reply_to(args.reply_to)
    if args.subject is not None:
        builder.set_subject(args.subject)

    builder.set_text(args.text if args.text is not None else _read_file(args.text_file))

    if args.html is not None:
        builder.set_html(args.html)
    elif args.html_file:
        builder.set_html(_read_file(args.html_file))
    elif args.template:
        builder.load_template(args.template, dict(args.var))

    smtp = config_manager.config.smtp
    builder.set_server(args.host or smtp.host, args.port or smtp.port)

    password = smtp.password
    if args.password_env:
        if args.password_env not in os.environ:
            raise MissingConfigError(
                f"Environment variable {args.password_env} is not set"
            )
        password = os.environ[args.password_env]
    builder.set_credentials(args.username or smtp.username, password)

    builder.set_verbose(config_manager.config.logging.verbose and not args.quiet)

    return builder.build()


def handle_send(args: argparse.Namespace, config_manager: ConfigManager) -> None:
    """Build, send and report one message."""
    config = build_configuration(args, config_manager)

    sender = MailSender.from_config(config_manager, listener=print_transcript_event)
    if args.client_id:
        sender.client_identifier = args.client_id
    if args.strict:
        sender.reply_mode = ReplyMode.STRICT

    replies = sender.send(config)
    logger.info(f"Send finished with {len(replies)} server replies")

    rejected = [reply for reply in replies if reply.is_error]
    if rejected:
        print_error(
            f"Server rejected {len(rejected)} command(s): "
            + ", ".join(str(reply.code) for reply in rejected)
        )
    else:
        print_success(f"Email sent to {len(config.to)} recipient(s)")


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point, returns the process exit code"""
    parser = setup_argument_parser()
    args = parser.parse_args(argv)

    try:
        config_manager = ConfigManager(args.config)
        init_logging().set_level(config_manager.config.logging.log_level)

        if args.command == "send":
            handle_send(args, config_manager)

    except SocketMailError as e:
        ErrorHandler.handle(e, f"socketmail {args.command}", log_traceback=False)
        print_error(format_error_message(e))
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())

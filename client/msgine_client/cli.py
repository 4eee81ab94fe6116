import argparse
import json
import os
import sys

from .config import default_config_path, load_config, read_config_file
from .errors import ApiError, MsGineError, ValidationError
from .logging_config import get_logger, log_sms_event, setup_logging
from .sms_api_caller import SMSAPIClient

logger = get_logger(__name__)


def write_file(path: str, data: bytes, mode: int = 0o600) -> None:
    with open(path, 'wb') as f:
        f.write(data)
    try:
        os.chmod(path, mode)
    except OSError:
        # chmod is not supported everywhere (e.g. some Windows filesystems)
        pass


def _print_error(e: Exception) -> None:
    if isinstance(e, ApiError):
        log_sms_event('sms_failed', status_code=e.status_code, request_id=e.request_id,
                      success=False, error=e.code or e.message)
        print(f"Error: {e.message} (status {e.status_code}, code {e.code or 'N/A'})", file=sys.stderr)
    else:
        print(f"Error: {e}", file=sys.stderr)


def _print_result(result, verbose: bool) -> None:
    log_sms_event('sms_sent', message_id=result.id, recipients=result.recipients,
                  status=result.status.value)
    if verbose:
        print(json.dumps(result.model_dump(mode='json', by_alias=True), indent=2))
    else:
        print(f"SMS sent successfully! Message ID: {result.id} (status: {result.status.value})")


def cmd_send_sms(args: argparse.Namespace) -> int:
    """Send an SMS message"""
    try:
        config = load_config(args.config)

        to_number = args.to
        if not to_number:
            config_path = args.config or default_config_path()
            if os.path.exists(config_path):
                to_number = read_config_file(config_path).get('to_number')
        if not to_number:
            print("Error: no recipient given (use --to or set to_number in the config file)",
                  file=sys.stderr)
            return 1

        with SMSAPIClient(config) as client:
            result = client.send_sms({'to': to_number, 'message': args.message})
        _print_result(result, args.verbose)
        return 0
    except (MsGineError, OSError, ValueError) as e:
        _print_error(e)
        return 1


def cmd_send_batch(args: argparse.Namespace) -> int:
    """Send every message listed in a JSON file"""
    try:
        with open(args.file, 'r') as f:
            payloads = json.load(f)
        if not isinstance(payloads, list):
            raise ValueError(f"Batch file must contain a JSON list: {args.file}")

        config = load_config(args.config)
        with SMSAPIClient(config) as client:
            results = client.send_sms_batch(payloads)

        for result in results:
            _print_result(result, args.verbose)
        print(f"Sent {len(results)} message(s)")
        return 0
    except ValidationError as e:
        print(f"Error: batch item {e.index}: {e}", file=sys.stderr)
        return 1
    except (MsGineError, OSError, ValueError) as e:
        _print_error(e)
        return 1


def cmd_init(args: argparse.Namespace) -> int:
    """Initialize the client - creates the config directory and config file"""
    config_dir = args.config_dir or os.path.dirname(default_config_path())
    config_path = os.path.join(config_dir, "config.json")

    print(f"Initializing MsGine client in: {config_dir}")

    try:
        os.makedirs(config_dir, exist_ok=True)
    except OSError as e:
        print(f"Failed to create config directory: {e}", file=sys.stderr)
        return 1

    if os.path.exists(config_path) and not args.force:
        print("File already exists: config.json")
        print("Use --force to overwrite existing files")
        return 1

    config_data = {
        "api_token": args.api_token,
        "base_url": args.base_url,
        "to_number": args.to_number,
    }
    # Remove None values
    config_data = {k: v for k, v in config_data.items() if v is not None}

    try:
        write_file(config_path, (json.dumps(config_data, indent=2) + "\n").encode('utf-8'), 0o600)
    except OSError as e:
        print(f"Failed to create config file: {e}", file=sys.stderr)
        return 1

    print(f"Created config file: {config_path}")
    if "api_token" not in config_data:
        print("No API token stored; set MSGINE_API_TOKEN or add api_token to the config file")
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="msgine-cli", description="MsGine SMS client utilities")
    p.add_argument("--log-level", default=None,
                   help="Logging level (default: LOG_LEVEL environment variable or WARNING)")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init", help="Create a config file",
                            description="Create the configuration directory and a config.json file.")
    p_init.add_argument("--config-dir", help="Config directory (default: XDG_CONFIG_HOME/msgine or ~/.config/msgine)")
    p_init.add_argument("--api-token", help="MsGine API token to store in the config file")
    p_init.add_argument("--base-url", help="API base URL (default: production endpoint)")
    p_init.add_argument("--to-number", help="Default recipient phone number")
    p_init.add_argument("--force", action="store_true", help="Overwrite an existing config file")
    p_init.set_defaults(func=cmd_init)

    p_send = sub.add_parser("send", help="Send an SMS message",
                            description="Send an SMS message to a phone number using the MsGine API.")
    p_send.add_argument("message", help="Message to send")
    p_send.add_argument("--to", help="Recipient phone number (overrides config)")
    p_send.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_send.add_argument("--verbose", "-v", action="store_true", help="Print the full API response")
    p_send.set_defaults(func=cmd_send_sms)

    p_batch = sub.add_parser("batch", help="Send several SMS messages",
                             description="Send every message in a JSON file containing a list of "
                                         "{\"to\": ..., \"message\": ...} objects.")
    p_batch.add_argument("file", help="JSON file with the messages to send")
    p_batch.add_argument("--config", default=None, help="Config file path (default: auto-detect from config directory)")
    p_batch.add_argument("--verbose", "-v", action="store_true", help="Print the full API responses")
    p_batch.set_defaults(func=cmd_send_batch)

    return p


def main(argv=None) -> int:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        setup_logging(args.log_level)
    except ValueError as e:
        parser.error(str(e))
    logger.debug(f"Running command: {args.cmd}")
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())

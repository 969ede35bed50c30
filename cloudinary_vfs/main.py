# main.py
import argparse
import logging
import shutil
import sys
from datetime import datetime, timezone
from typing import Optional

from .adapter import CloudinaryAdapter
from .client import CloudinaryClient
from .config import get_settings
from .exceptions import StorageError


def setup_logging():
    """Configures logging to file and console explicitly."""
    settings = get_settings()
    log_level_name = settings.LOG_LEVEL.upper()

    # Get the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level_name)

    # Clear any existing handlers to prevent duplicate logs on re-runs or implicit configs
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    # Console output goes to stderr so stdout stays usable for file contents
    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(formatter)
    root_logger.addHandler(stream_handler)

    try:
        file_handler = logging.FileHandler(settings.LOG_FILE)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
    except IOError as e:
        # Log to console if file logging fails (e.g., permissions)
        root_logger.error(f"Failed to set up file logging to {settings.LOG_FILE}: {e}")

    # Reducing "noise" from third-party libraries
    logging.getLogger("cloudinary").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def initialize_adapter(settings, verify: bool = True) -> Optional[CloudinaryAdapter]:
    """Builds the Cloudinary client and wraps it in a filesystem adapter."""
    try:
        client = CloudinaryClient(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            verify=verify,
        )
    except Exception as e:
        logging.error(
            f"Failed to initialize Cloudinary client. Error: {e}", exc_info=True
        )
        return None

    logging.info(
        f"Using Cloudinary cloud '{settings.CLOUDINARY_CLOUD_NAME}' with {settings.folder_mode} folders."
    )
    return CloudinaryAdapter(
        client,
        folder_mode=settings.folder_mode,
        path_prefix=settings.CLOUDINARY_PATH_PREFIX,
        http_timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


def _format_entry(entry) -> str:
    if entry.is_dir:
        return f"{'DIR':>10}  {'':19}  {entry.path}/"
    modified = ""
    if entry.last_modified is not None:
        modified = datetime.fromtimestamp(entry.last_modified, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    return f"{entry.file_size or 0:>10}  {modified:19}  {entry.path}"


def run_command(adapter: CloudinaryAdapter, args, out=None):
    """Executes one parsed CLI command against the adapter."""
    out = out or sys.stdout
    command = args.command

    if command == "ls":
        for entry in adapter.list_contents(args.path, args.recursive):
            print(_format_entry(entry), file=out)
    elif command == "cat":
        out.write(adapter.read(args.path).decode("utf-8", errors="replace"))
    elif command == "get":
        with open(args.local, "wb") as f:
            shutil.copyfileobj(adapter.read_stream(args.remote), f)
    elif command == "put":
        with open(args.local, "rb") as f:
            adapter.write_stream(args.remote, f)
    elif command == "rm":
        adapter.delete(args.path)
    elif command == "rmdir":
        adapter.delete_directory(args.path)
    elif command == "mkdir":
        adapter.create_directory(args.path)
    elif command == "mv":
        adapter.move(args.source, args.destination)
    elif command == "cp":
        adapter.copy(args.source, args.destination)
    elif command == "url":
        print(adapter.public_url(args.path), file=out)
    elif command == "stat":
        print(f"path:          {args.path}", file=out)
        print(f"size:          {adapter.file_size(args.path)}", file=out)
        print(f"last modified: {adapter.last_modified(args.path)}", file=out)
        print(f"mime type:     {adapter.mime_type(args.path)}", file=out)
        print(f"visibility:    {adapter.visibility(args.path)}", file=out)
    else:
        raise ValueError(f"Unknown command: {command}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Browse and manage a Cloudinary account as a filesystem."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls = subparsers.add_parser("ls", help="List a directory.")
    ls.add_argument("path", nargs="?", default="")
    ls.add_argument("-r", "--recursive", action="store_true", help="Descend into subdirectories.")

    for name, help_text in [
        ("cat", "Print a file."),
        ("rm", "Delete a file."),
        ("rmdir", "Delete a directory and everything in it."),
        ("mkdir", "Create a directory."),
        ("url", "Print the public URL of a file."),
        ("stat", "Print the metadata of a file."),
    ]:
        subparsers.add_parser(name, help=help_text).add_argument("path")

    get = subparsers.add_parser("get", help="Download a file.")
    get.add_argument("remote")
    get.add_argument("local")

    put = subparsers.add_parser("put", help="Upload a file, replacing any existing one.")
    put.add_argument("local")
    put.add_argument("remote")

    for name, help_text in [("mv", "Move a file."), ("cp", "Copy a file.")]:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("source")
        sub.add_argument("destination")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging()

    adapter = initialize_adapter(get_settings())
    if adapter is None:
        logging.critical("Could not establish a connection to Cloudinary.")
        return 2

    try:
        run_command(adapter, args)
    except StorageError as e:
        logging.error(f"Command '{args.command}' failed: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

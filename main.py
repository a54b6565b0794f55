"""CLI entry point for jarchive — inspect exploded and packaged archives."""

import argparse
import sys

from archive import Archive, ArchiveError, Entry, EntryName
from helpers import init_logger
from resolver import open_archive
from settings import Settings


def strip_prefix(archive: Archive, prefix: str) -> Archive:
    """Filtered view of the entries below prefix, renamed relative to it."""
    prefix_name = EntryName(prefix if prefix.endswith("/") else prefix + "/")
    cut = len(prefix_name)

    def rename(name: EntryName, entry: Entry):
        if name.startswith(prefix_name) and name != prefix_name:
            return bytes(name)[cut:]
        return None

    return archive.filtered_view(rename)


def list_entries(archive: Archive, args, settings: Settings):
    for entry in archive:
        print(entry.name)


def show_manifest(archive: Archive, args, settings: Settings):
    manifest = archive.manifest()
    if manifest is None:
        print(f"Error: no manifest in {archive.url}", file=sys.stderr)
        sys.exit(1)
    for key, value in manifest.main_attributes.items():
        print(f"{key}: {value}")


def list_nested(archive: Archive, args, settings: Settings):
    suffixes = tuple(settings.nested_suffixes)

    def is_nested(entry: Entry) -> bool:
        return entry.is_directory or str(entry.name).endswith(suffixes)

    for nested in archive.nested_archives(is_nested):
        print(f"{nested.url}\t{len(nested)}")


def cat_resource(archive: Archive, args, settings: Settings):
    data = archive.resource_location().resolve(args.name).read()
    sys.stdout.flush()
    sys.stdout.buffer.write(data)
    sys.stdout.buffer.flush()


# Maps subcommand name -> (handler, help)
COMMANDS = {
    "entries": (list_entries, "List entry names"),
    "manifest": (show_manifest, "Print the manifest's main attributes"),
    "nested": (list_nested, "List nested archives"),
    "cat": (cat_resource, "Write a resource's content to stdout"),
}


def main(argv=None):
    settings = Settings()
    parser = argparse.ArgumentParser(
        description="jarchive — inspect exploded and packaged archives"
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="increase log verbosity (default: info, -v: verbose, -vv: debug, -vvv: spam)",
    )

    sub = parser.add_subparsers(dest="command")
    for name, (_, help_text) in COMMANDS.items():
        p = sub.add_parser(name, help=help_text)
        p.add_argument("path", help="Directory or container file")
        if name == "cat":
            p.add_argument("name", help="Resource name relative to the archive root")
        p.add_argument(
            "--no-recursive",
            dest="recursive",
            action="store_false",
            default=settings.recursive,
            help="Index only top-level entries and META-INF of a directory",
        )
        if name in ("entries", "cat"):
            p.add_argument("--under", metavar="PREFIX", help="Only show entries below PREFIX, renamed relative to it")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    init_logger("jarchive", args.verbose, settings.log_format)
    handler, _ = COMMANDS[args.command]
    try:
        archive = open_archive(args.path, args.recursive)
        if getattr(args, "under", None):
            archive = strip_prefix(archive, args.under)
        handler(archive, args, settings)
    except (ArchiveError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()

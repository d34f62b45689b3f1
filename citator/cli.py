#!/usr/bin/env python3
"""Citator CLI - equation and figure numbering from the command line.

Usage:
    citator number <file> [--figures] [--vault DIR] [--no-update]
    citator rename <file> OLD=NEW... [options]
    citator citations <file> [--kind KIND]
    citator callouts <file>
    citator cite <file> TAG... [--source NOTE] [--kind KIND]
    citator export <file> [-o OUTPUT] [--no-css]
    citator --version
    citator --help

Commands:
    number      Auto-number equations (or figures) and update citations
    rename      Rename tags and update citations in backlinking notes
    citations   List the citations of a note
    callouts    List the citable callouts of a note
    cite        Print the citation text for tags
    export      Export a note as printable HTML

Examples:
    # Number all equations of a chapter, updating citations vault-wide
    citator number notes/chapter1.md --vault notes

    # Rename equation 1.2 to 2.1
    citator rename notes/chapter1.md 1.2=2.1 --vault notes

    # Cite equations 1.1 to 1.3 of another note through a footnote
    citator cite notes/chapter2.md 1.1~3 --source notes/chapter1.md

    # Export with citations rendered as text
    citator export notes/chapter1.md -o chapter1.html
"""

import argparse
import logging
import sys
from pathlib import Path


def get_version():
    """Get package version."""
    from citator import __version__
    return __version__


def _open(args):
    """Build a Citator for the command's file and return it with the note's vault path."""
    from citator import Citator, Config, FileSystemVault

    file_path = Path(args.file)
    if not file_path.is_file():
        print(f"Error: File not found: {file_path}")
        return None, None

    vault_dir = Path(args.vault) if args.vault else file_path.resolve().parent
    level = logging.DEBUG if args.verbose else logging.WARNING
    config = Config.from_env(args.env_file)
    citator = Citator(FileSystemVault(vault_dir), config=config, log_level=level)
    return citator, citator.vault.relative_path(file_path)


def _kind(args):
    if getattr(args, "kind", None):
        return args.kind
    return "figure" if getattr(args, "figures", False) else "equation"


def _print_rename_result(result):
    if result is None:
        return
    print(f"  Files changed: {result.total_files_changed}")
    print(f"  Citations changed: {result.total_citations_changed}")
    for path, count in sorted(result.details.items()):
        print(f"    {path}: {count}")


def cmd_number(args):
    """Auto-number equations or figures of a note."""
    from citator import CitatorError

    try:
        citator, path = _open(args)
        if citator is None:
            return 1
        result, renamed = citator.auto_number_file(
            path, kind=_kind(args), update_citations=False if args.no_update else None
        )
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    changed = {old: new for old, new in result.tag_mapping.items() if old != new}
    print(f"Numbered {_kind(args)}s in {path}")
    print(f"  Tags changed: {len(changed)}")
    for old, new in changed.items():
        print(f"    {old} -> {new}")
    _print_rename_result(renamed)
    return 0


def _parse_pairs(raw_pairs):
    from citator import TagRenamePair, ValidationError

    pairs = []
    for raw in raw_pairs:
        old, sep, new = raw.partition("=")
        if not sep or not old.strip() or not new.strip():
            raise ValidationError(f"Invalid rename pair {raw!r}, expected OLD=NEW")
        pairs.append(TagRenamePair(old.strip(), new.strip()))
    return pairs


def cmd_rename(args):
    """Rename tags in a note and its backlinks."""
    from citator import CitatorError

    try:
        pairs = _parse_pairs(args.pairs)
        citator, path = _open(args)
        if citator is None:
            return 1

        repeated = citator.check_repeated_tags(path, pairs, kind=_kind(args))
        if args.check:
            if repeated:
                print("New tags collide with tags that are already cited")
                return 1
            print("No collisions")
            return 0
        if repeated:
            print("Warning: new tags collide with tags that are already cited")

        result = citator.rename_tags(
            path,
            pairs,
            delete_repeat=args.delete_repeat,
            delete_unused=args.delete_unused,
            kind=_kind(args),
        )
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    print(f"Renamed tags in {path}")
    _print_rename_result(result)
    return 0


def cmd_citations(args):
    """List the citations of a note."""
    from citator import CitatorError

    try:
        citator, path = _open(args)
        if citator is None:
            return 1
        citations = citator.list_citations(path, kind=args.kind)
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    if not citations:
        print(f"No citations found in {path}")
        return 0

    print(f"{'Line':<6} {'Label':<30} Text")
    print("-" * 60)
    for citation in citations:
        print(f"{citation.line + 1:<6} {citation.label:<30} {citation.full_match}")
    print(f"\n{len(citations)} citation(s)")
    return 0


def cmd_callouts(args):
    """List the citable callouts of a note."""
    from citator import CitatorError

    try:
        citator, path = _open(args)
        if citator is None:
            return 1
        callouts = citator.list_callouts(path)
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    if not callouts:
        print(f"No citable callouts found in {path}")
        return 0

    print(f"{'Lines':<10} {'Label':<20} Content")
    print("-" * 60)
    for callout in callouts:
        lines = f"{callout.line_start + 1}-{callout.line_end + 1}"
        first = callout.content.split("\n")[0]
        print(f"{lines:<10} {callout.label:<20} {first[:40]}")
    print(f"\n{len(callouts)} callout(s)")
    return 0


def cmd_cite(args):
    """Print the citation text for tags, adding a footnote for cross-file tags."""
    from citator import CitatorError

    try:
        citator, path = _open(args)
        if citator is None:
            return 1
        source = citator.vault.relative_path(args.source) if args.source else None
        citation = citator.cite(
            path, args.tags, source_path=source, kind=_kind(args), create_footnote=not args.no_footnote
        )
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    print(citation)
    return 0


def cmd_export(args):
    """Export a note as printable HTML."""
    from citator import CitatorError

    try:
        citator, path = _open(args)
        if citator is None:
            return 1
        output = args.output or str(Path(args.file).with_suffix(".html"))
        citator.export_html(path, output, include_css=not args.no_css)
    except CitatorError as e:
        print(f"Error: {e}")
        return 1

    print(f"Exported: {output}")
    return 0


def _add_common_arguments(parser):
    parser.add_argument("file", help="Markdown note")
    parser.add_argument("--vault", help="Vault root directory (default: the note's directory)")
    parser.add_argument("--env-file", help="Load options from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="citator",
        description="Citator - equation and figure numbering for Markdown notes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  citator number notes/chapter1.md --vault notes
  citator number notes/chapter1.md --figures
  citator rename notes/chapter1.md 1.2=2.1 1.3=2.2 --delete-repeat
  citator citations notes/chapter1.md --kind equation
  citator cite notes/chapter2.md 2.1 --source notes/chapter1.md
  citator export notes/chapter1.md -o chapter1.html
        """
    )
    parser.add_argument("--version", action="version", version=f"citator {get_version()}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # number command
    number_parser = subparsers.add_parser(
        "number",
        help="Auto-number equations or figures",
        description="Number equations (or figures) by heading structure and update citations."
    )
    _add_common_arguments(number_parser)
    number_parser.add_argument("--figures", action="store_true", help="Number figures instead of equations")
    number_parser.add_argument("--no-update", action="store_true",
                               help="Don't rewrite citations after numbering")

    # rename command
    rename_parser = subparsers.add_parser(
        "rename",
        help="Rename tags",
        description="Rename tags and update citations in the note and its backlinks."
    )
    _add_common_arguments(rename_parser)
    rename_parser.add_argument("pairs", nargs="+", metavar="OLD=NEW", help="Tag renames")
    rename_parser.add_argument("--figures", action="store_true", help="Rename figure tags")
    rename_parser.add_argument("--kind", help="Object kind: equation, figure or a callout type such as table")
    rename_parser.add_argument("--delete-repeat", action="store_true",
                               help="Drop citations that collide after renaming")
    rename_parser.add_argument("--delete-unused", action="store_true",
                               help="Drop citations of tags not being renamed")
    rename_parser.add_argument("--check", action="store_true",
                               help="Only report whether the renames would collide")

    # citations command
    citations_parser = subparsers.add_parser(
        "citations",
        help="List citations",
        description="List every inline citation of a note."
    )
    _add_common_arguments(citations_parser)
    citations_parser.add_argument("--kind", help="Only this kind: equation, figure or a callout type")

    # callouts command
    callouts_parser = subparsers.add_parser(
        "callouts",
        help="List citable callouts",
        description="List the callout blocks of a note that carry a citation label."
    )
    _add_common_arguments(callouts_parser)

    # cite command
    cite_parser = subparsers.add_parser(
        "cite",
        help="Build a citation",
        description="Print the citation text for tags; tags of another note are cited through a footnote."
    )
    _add_common_arguments(cite_parser)
    cite_parser.add_argument("tags", nargs="+", metavar="TAG", help="Tags to cite")
    cite_parser.add_argument("--source", help="Note holding the cited objects (default: the note itself)")
    cite_parser.add_argument("--kind", help="Object kind: equation, figure or a callout type")
    cite_parser.add_argument("--no-footnote", action="store_true",
                             help="Don't append a missing footnote for --source")

    # export command
    export_parser = subparsers.add_parser(
        "export",
        help="Export to HTML",
        description="Render citations and figure captions, then convert to HTML."
    )
    _add_common_arguments(export_parser)
    export_parser.add_argument("-o", "--output", help="Output HTML file (default: <file>.html)")
    export_parser.add_argument("--no-css", action="store_true", help="Don't include print CSS")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    commands = {
        "number": cmd_number,
        "rename": cmd_rename,
        "citations": cmd_citations,
        "callouts": cmd_callouts,
        "cite": cmd_cite,
        "export": cmd_export,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())

from argparse import ArgumentParser, HelpFormatter, ArgumentTypeError
from pathlib import Path

from ..manifest import VersionManifest

from .output import Output
from .lang import get as _

from typing import Optional, Type, Tuple, List


# The following classes are only used for type checking and represent a typed namespace
# as produced by the arguments registered to the argument parser.

class RootNs:
    main_dir: Optional[Path]
    timeout: Optional[float]
    out_kind: str
    verbose: int
    # Initialized by main function after argument parsing.
    out: Output
    version_manifest: VersionManifest

class SearchNs(RootNs):
    kind: str
    input: Optional[str]

class StartNs(RootNs):
    dry: bool
    no_install: bool
    resolution: Optional[Tuple[int, int]]
    jvm: Optional[str]
    jvm_args: Optional[str]
    username: Optional[str]
    login: Optional[str]
    version: str


def register_arguments() -> ArgumentParser:
    parser = ArgumentParser(allow_abbrev=False, prog="mclaunch", description=_("args"))
    parser.add_argument("--main-dir", help=_("args.main_dir"), type=Path)
    parser.add_argument("--timeout", help=_("args.timeout"), type=float)
    parser.add_argument("--output", help=_("args.output"), dest="out_kind", choices=get_outputs(), default="human-color")
    parser.add_argument("-v", dest="verbose", help=_("args.verbose"), action="count", default=0)
    register_subcommands(parser.add_subparsers(title="subcommands", dest="subcommand"))
    return parser


def register_subcommands(subparsers):
    register_search_arguments(subparsers.add_parser("search", help=_("args.search")))
    register_start_arguments(subparsers.add_parser("start", help=_("args.start")))
    register_show_arguments(subparsers.add_parser("show", help=_("args.show")))


def register_search_arguments(parser: ArgumentParser):
    parser.add_argument("-k", "--kind", help=_("args.search.kind"), default="mojang", choices=get_search_kinds())
    parser.add_argument("input", nargs="?")


def register_start_arguments(parser: ArgumentParser):
    parser.formatter_class = new_help_formatter_class(40)
    parser.add_argument("--dry", help=_("args.start.dry"), action="store_true")
    parser.add_argument("--no-install", help=_("args.start.no_install"), action="store_true")
    parser.add_argument("--resolution", help=_("args.start.resolution"), type=resolution_from_str)
    parser.add_argument("--jvm", help=_("args.start.jvm"))
    parser.add_argument("--jvm-args", help=_("args.start.jvm_args"), metavar="ARGS")
    auth_group = parser.add_mutually_exclusive_group()
    auth_group.add_argument("-u", "--username", help=_("args.start.username"), metavar="NAME")
    auth_group.add_argument("-l", "--login", help=_("args.start.login"), metavar="USERNAME")
    parser.add_argument("version", nargs="?", default="release", help=_("args.start.version"))


def register_show_arguments(parser: ArgumentParser):
    subparsers = parser.add_subparsers(title="subcommands", dest="show_subcommand")
    subparsers.required = True
    subparsers.add_parser("about", help=_("args.show.about"))


def new_help_formatter_class(max_help_position: int) -> Type[HelpFormatter]:

    class CustomHelpFormatter(HelpFormatter):
        def __init__(self, prog):
            super().__init__(prog, max_help_position=max_help_position)

    return CustomHelpFormatter


def get_outputs() -> List[str]:
    return ["human-color", "human", "machine"]


def get_search_kinds() -> List[str]:
    return ["mojang", "local"]


def resolution_from_str(s: str) -> Tuple[int, int]:
    parts = s.split("x")
    try:
        if len(parts) == 2:
            width, height = int(parts[0]), int(parts[1])
            if width > 0 and height > 0:
                return width, height
    except ValueError:
        pass
    raise ArgumentTypeError(_("args.start.resolution.invalid", given=s))

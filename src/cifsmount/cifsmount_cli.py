"""
cifsmount

Configure CIFS/SMB network shares as systemd mount units: install cifs-utils,
ask for the share and its credentials, write a credentials file and the units,
then enable and start them.
"""

import argparse
from importlib import metadata
import logging
from pathlib import Path
import shutil
import sys
import tempfile

from cifsmount.answers import (
    ask_again,
    ask_mount,
    dump_answers,
    load_answer_file,
)
from cifsmount.config import config_path, load_settings
from cifsmount.errors import CifsMountError, ConfigError
from cifsmount.system import (
    enable_and_start,
    install_packages,
    require_root,
    verify,
)
from cifsmount.units import RenderedFile, render_plan, write_file, write_plan


LOG_FORMAT = "%(asctime)s - %(levelname)-8s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

log = logging.getLogger(__name__)


def configure_logging(verbose: bool):
    """
    Log to stderr; prompts and verification output stay on stdout
    """
    logger = logging.getLogger("cifsmount")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
        logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)


def load_answers(namespace: argparse.Namespace, named: bool):
    """
    Answers from --answer-file, or None when we should ask questions instead
    """
    if not namespace.answer_file:
        return None

    try:
        return load_answer_file(Path(namespace.answer_file), namespace.settings, named)
    except FileNotFoundError as e:
        if namespace.answer_file_ignore_missing:
            print(f"** Warning: {e}")
            return None
        raise namespace.subparser.error(str(e))


def iter_answers(namespace: argparse.Namespace, named: bool):
    """
    Yield one MountAnswers per mount to set up.

    When asking questions, "Add another mount?" is asked only after the
    caller has finished with the previous mount.
    """
    loaded = load_answers(namespace, named)
    if loaded is not None:
        if namespace.once and len(loaded) > 1:
            log.warning("using the first of %d mounts in %s", len(loaded), namespace.answer_file)
            loaded = loaded[:1]
        yield from loaded
        return

    while True:
        yield ask_mount(namespace.settings, named)
        if namespace.once or not ask_again():
            break


def apply_mounts(namespace: argparse.Namespace, named: bool) -> list:
    """
    The whole pipeline: root check, packages, then per mount write units,
    start them and show their status
    """
    require_root()
    if not namespace.skip_install:
        install_packages()

    settings = namespace.settings
    plans = []
    for answers in iter_answers(namespace, named):
        plan = render_plan(answers, settings)
        write_plan(plan)
        for rendered in plan.files:
            print(f"Created {rendered.path}")

        enable_and_start(plan.mount_unit, plan.wrapper_service, systemctl=settings.systemctl)
        verify(
            plan.label,
            answers.mount_point,
            plan.mount_unit,
            plan.wrapper_service,
            systemctl=settings.systemctl,
        )
        plans.append(plan)
    return plans


def build_add(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.description = do_add.__doc__
    add_answer_file_arguments(parser)
    add_install_arguments(parser)
    parser.add_argument(
        "--once",
        action="store_true",
        help="Set up a single mount and don't offer to add another",
    )
    return parser


def do_add(namespace: argparse.Namespace):
    """
    Add one or more named CIFS mounts, each with a cifs-<name>.service wrapper
    """
    apply_mounts(namespace, named=True)

    print()
    print("Done.")
    print("You can manage mounts by mountpoint-unit (required by systemd), e.g.:")
    print("  systemctl status mnt-foo.mount")
    print("Or by friendly name service:")
    print("  systemctl status cifs-<name>.service")
    return 0


def build_add_simple(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.description = do_add_simple.__doc__
    add_answer_file_arguments(parser)
    add_install_arguments(parser)
    parser.set_defaults(once=True)
    return parser


def do_add_simple(namespace: argparse.Namespace):
    """
    Add a single CIFS mount unit, without a friendly wrapper service
    """
    plans = apply_mounts(namespace, named=False)

    print()
    print("Done.")
    for plan in plans:
        print(f"  systemctl status {plan.mount_unit}")
    return 0


def build_generate(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.description = do_generate.__doc__
    add_answer_file_arguments(parser)
    parser.add_argument(
        "--simple",
        action="store_true",
        help="Generate an unnamed mount like add-simple does (no wrapper service)",
    )
    parser.add_argument(
        "--output-dir",
        default=Path("."),
        type=Path,
        help="Where to put the generated files (default: %(default)s)",
    )
    parser.set_defaults(once=True)
    return parser


def do_generate(namespace: argparse.Namespace):
    """
    Create the credentials file and unit files for one mount, without
    installing or starting anything.
    """
    named = not namespace.simple
    answers = next(iter_answers(namespace, named))
    plan = render_plan(answers, namespace.settings)

    with tempfile.TemporaryDirectory(prefix="cifsmount-generate") as td:
        p = Path(td)

        for rendered in plan.files:
            write_file(RenderedFile(p / rendered.path.name, rendered.contents, rendered.mode))
        write_file(RenderedFile(p / "answers.toml", dump_answers([answers])))

        def copy_fn(src, dst, *a, **kw):
            """Verbosely copy"""
            shutil.copy2(src, dst, *a, **kw)
            print(f"Created {dst}")

        shutil.copytree(p, namespace.output_dir, copy_function=copy_fn, dirs_exist_ok=True)

    return 0


def build_dumpconfig(parser: argparse.ArgumentParser) -> argparse.ArgumentParser:
    parser.description = do_dumpconfig.__doc__
    return parser


def do_dumpconfig(namespace: argparse.Namespace):
    """
    Just print the effective configuration as toml, then exit
    """
    print(f"# config file: {namespace.config_path}")
    print(namespace.settings.as_toml(), end="")
    return 0


def add_answer_file_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--answer-file",
        default=None,
        help="Set up the [[mount]] tables of the given .toml file instead of prompting",
    )
    parser.add_argument(
        "--answer-file-ignore-missing",
        action="store_true",
        help="If --answer-file is given but the file is missing, just ask the questions instead",
    )


def add_install_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--skip-install",
        action="store_true",
        help="Don't install cifs-utils with the system package manager",
    )


def build_root_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cifsmount")
    parser.description = __doc__
    parser.formatter_class = argparse.RawDescriptionHelpFormatter
    parser.add_argument(
        "--config",
        default=None,
        help="Path to defaults.toml (default: $CIFSMOUNT_CONFIG or /etc/cifsmount/defaults.toml)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log every command that runs"
    )
    parser.add_argument(
        "--version", action="version", version=f"cifsmount v{metadata.version('cifsmount')}"
    )

    subparsers = parser.add_subparsers(dest="subcommand", required=True)
    add = subparsers.add_parser("add")
    add = build_add(add)
    add.set_defaults(sub=do_add, subparser=add)
    add_simple = subparsers.add_parser("add-simple")
    add_simple = build_add_simple(add_simple)
    add_simple.set_defaults(sub=do_add_simple, subparser=add_simple)
    generate = subparsers.add_parser("generate")
    generate = build_generate(generate)
    generate.set_defaults(sub=do_generate, subparser=generate)
    dumpconfig = subparsers.add_parser("dumpconfig")
    dumpconfig = build_dumpconfig(dumpconfig)
    dumpconfig.set_defaults(sub=do_dumpconfig, subparser=dumpconfig)
    return parser


def main(argv=None):
    parser = build_root_parser()
    ns = parser.parse_args(argv)
    configure_logging(ns.verbose)

    setattr(ns, "config_path", config_path(ns.config))
    try:
        setattr(ns, "settings", load_settings(ns.config_path))
    except ConfigError as e:
        raise ns.subparser.error(str(e))

    try:
        return ns.sub(ns)
    except KeyboardInterrupt:
        print()
        return 130
    except CifsMountError as e:
        raise ns.subparser.error(str(e))


if __name__ == "__main__":
    sys.exit(main())

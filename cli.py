import argparse
import json
import logging
import sys
import threading
import time
import webbrowser
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from textwrap import dedent
from typing import Any, Callable, Dict, List, TypeVar, cast

from dotenv import load_dotenv

from core.controller import LifecycleController
from core.io_utils import load_image_attachment, read_json_file
from core.models import FIELD_IMAGE, MODALITY_TEXT, LifecycleStatus
from core.renderer import render_plain, save_html
from core.services import (
    CATEGORIES,
    build_adapter,
    clear_redirect_override,
    list_redirects,
    list_tool_entries,
    load_config_from_env,
    set_redirect_override,
)
from core.tools import (
    GenerationTool,
    PlaceholderTool,
    RedirectTool,
    ToolHandler,
    build_tool_registry,
    resolve_tool,
)

PACKAGE_NAME = "market-suite"
LOGGER = logging.getLogger("market_suite")
T = TypeVar("T")


def main() -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args()
    _configure_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        if args.command == "tools":
            _run_tools(args)
            return 0

        if args.command == "describe":
            _run_describe(args)
            return 0

        if args.command == "redirect":
            _run_redirect(args)
            return 0

        if args.command == "run":
            _run_tool(args)
            return 0

        raise ValueError(f"Unknown command: {args.command}")
    except Exception as exc:  # noqa: BLE001
        _console_error(f"error: {exc}")
        LOGGER.debug("CLI execution failed", exc_info=True)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Market Suite: AI marketing tools from the terminal",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=_root_help_epilog(),
    )
    parser.add_argument(
        "--output-dir",
        default=None,
        help="Download directory (default: MARKET_SUITE_OUTPUT_DIR or ./downloads)",
    )
    verbosity_group = parser.add_mutually_exclusive_group()
    verbosity_group.add_argument(
        "--verbose",
        action="store_true",
        help="Show debug logs.",
    )
    verbosity_group.add_argument(
        "--quiet",
        action="store_true",
        help="Only show errors.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_app_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)
    tools = _new_subparser(
        subparsers,
        "tools",
        "List the tool catalog",
        _tools_help_epilog(),
    )
    tools.add_argument("--category", choices=CATEGORIES, default=None)
    tools.add_argument("--format", choices=["text", "json"], default="text")

    describe = _new_subparser(
        subparsers,
        "describe",
        "Show how a tool opens and which fields it takes",
        _describe_help_epilog(),
    )
    describe.add_argument("--tool", required=True)
    describe.add_argument("--format", choices=["text", "json"], default="text")

    run = _new_subparser(
        subparsers,
        "run",
        "Run one tool once",
        _run_help_epilog(),
    )
    run.add_argument("--tool", required=True)
    run.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Set one form field. Repeat for more fields.",
    )
    run.add_argument("--fields-json", default=None, help="JSON object with field values")
    run.add_argument("--image", default=None, help="Image file for the tool's image field")
    run.add_argument(
        "--copy",
        action="store_true",
        help="Copy the plain-text result to the clipboard.",
    )
    run.add_argument(
        "--download",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Save the result under the tool's file name (default: on for image/video).",
    )
    run.add_argument(
        "--html",
        default=None,
        metavar="PATH",
        help="Also write the result as an HTML page (images and videos embedded).",
    )

    redirect = _new_subparser(
        subparsers,
        "redirect",
        "Manage tools that open an external page",
        _redirect_help_epilog(),
    )
    redirect_subparsers = redirect.add_subparsers(dest="redirect_command", required=True)
    _new_subparser(
        redirect_subparsers,
        "list",
        "List tools that redirect",
        _redirect_help_epilog(),
    )
    redirect_set = _new_subparser(
        redirect_subparsers,
        "set",
        "Open a tool at an external URL",
        _redirect_help_epilog(),
    )
    redirect_set.add_argument("--tool", required=True)
    redirect_set.add_argument("--url", required=True)
    redirect_clear = _new_subparser(
        redirect_subparsers,
        "clear",
        "Open a tool inline again",
        _redirect_help_epilog(),
    )
    redirect_clear.add_argument("--tool", required=True)
    return parser


def _new_subparser(subparsers, name: str, help_text: str, epilog: str):
    return subparsers.add_parser(
        name,
        help=help_text,
        description=help_text,
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=epilog,
    )


def _app_version() -> str:
    try:
        return version(PACKAGE_NAME)
    except PackageNotFoundError:
        return "0.1.0-dev"


def _run_tools(args) -> None:
    entries = list_tool_entries(args.category)
    registry = build_tool_registry()
    for entry in entries:
        entry["view"] = registry[entry["key"]].view_kind
    if args.format == "json":
        payload = {"category_filter": args.category, "tools": entries}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    _print_tools_text(entries)


def _print_tools_text(entries: List[Dict[str, str]]) -> None:
    if not entries:
        print("No tools found.")
        return
    headers = ("key", "title", "category", "view")
    print(f"{headers[0]:<26} {headers[1]:<38} {headers[2]:<22} {headers[3]}")
    print("-" * 100)
    for row in entries:
        print(f"{row['key']:<26} {row['title']:<38} {row['category']:<22} {row['view']}")
        if row["redirect"]:
            print(f"{'':<26} redirect: {row['redirect']}")


def _describe_tool(handler: ToolHandler) -> Dict[str, Any]:
    descriptor = handler.descriptor
    payload: Dict[str, Any] = {
        "key": descriptor.key,
        "title": descriptor.title,
        "category": descriptor.category,
        "description": descriptor.description,
        "view": handler.view_kind,
    }
    if isinstance(handler, RedirectTool):
        payload["redirect"] = handler.url
    if isinstance(handler, PlaceholderTool):
        payload["message"] = handler.message
    if isinstance(handler, GenerationTool):
        payload["model"] = handler.model
        payload["output"] = handler.modality
        payload["download"] = handler.download_filename
        payload["requires_credential"] = handler.requires_credential
        payload["fields"] = [spec.model_dump() for spec in handler.fields]
    return payload


def _run_describe(args) -> None:
    payload = _describe_tool(resolve_tool(args.tool))
    if args.format == "json":
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return
    for key in ("key", "title", "category", "view", "redirect", "message", "model", "output"):
        if payload.get(key):
            print(f"{key:<10} {payload[key]}")
    if payload.get("download"):
        print(f"{'download':<10} {payload['download']}")
    fields = payload.get("fields", [])
    if not fields:
        return
    print("")
    print(f"{'field':<18} {'kind':<10} {'required':<9} details")
    print("-" * 80)
    for spec in fields:
        details = ""
        if spec["choices"]:
            details = "choices: " + ", ".join(spec["choices"])
        elif spec["generated"]:
            details = "filled by the model"
        elif spec["placeholder"]:
            details = spec["placeholder"]
        required = "yes" if spec["required"] else ""
        print(f"{spec['name']:<18} {spec['kind']:<10} {required:<9} {details}")


def _run_redirect(args) -> None:
    if args.redirect_command == "list":
        redirects = list_redirects()
        if not redirects:
            print("No redirect tools.")
            return
        for key, url in redirects.items():
            print(f"{key:<26} {url}")
        return

    if args.redirect_command == "set":
        tool = set_redirect_override(args.tool, args.url)
        _console_print(f"ok tool={tool.key} redirect={tool.redirect_url}", quiet=args.quiet)
        return

    if args.redirect_command == "clear":
        if clear_redirect_override(args.tool):
            _console_print(f"ok tool={args.tool} opens inline", quiet=args.quiet)
        else:
            _console_print(f"tool={args.tool} has no redirect", quiet=args.quiet)
        return

    raise ValueError(f"Unknown redirect command: {args.redirect_command}")


def _fields_from_args(args, handler: GenerationTool) -> Dict[str, Any]:
    values: Dict[str, Any] = dict(read_json_file(args.fields_json))
    for item in args.field:
        if "=" not in item:
            raise ValueError(f"--field expects NAME=VALUE, got: {item}")
        name, value = item.split("=", 1)
        values[name.strip()] = value

    known = {spec.name for spec in handler.fields}
    unknown = sorted(set(values) - known)
    if unknown:
        raise ValueError(
            f"unknown field(s) for {handler.key}: {', '.join(unknown)} "
            f"(available: {', '.join(sorted(known))})"
        )

    if args.image:
        image_fields = [spec.name for spec in handler.fields if spec.kind == FIELD_IMAGE]
        if not image_fields:
            raise ValueError(f"{handler.key} does not take an image")
        values[image_fields[0]] = load_image_attachment(args.image)
    return values


def _run_tool(args) -> None:
    handler = resolve_tool(args.tool)
    if isinstance(handler, RedirectTool):
        _console_print(f"redirect: {handler.url}", quiet=args.quiet)
        webbrowser.open(handler.url, new=2)
        return
    if not isinstance(handler, GenerationTool):
        raise ValueError(f"{handler.title}: {PlaceholderTool.message}")

    config = load_config_from_env(load_env_file=False)
    if args.output_dir:
        config = config.model_copy(update={"output_dir": args.output_dir})
    controller = LifecycleController(handler, build_adapter(config), config)
    values = _fields_from_args(args, handler)

    state = _run_with_progress(
        action=f"running tool={handler.key} model={handler.model}",
        quiet=args.quiet,
        fn=lambda: controller.submit(values),
    )
    if state.status != LifecycleStatus.SUCCEEDED or state.result is None:
        raise RuntimeError(state.error_message or f"{handler.key} did not finish")

    _console_print(render_plain(state.result), quiet=args.quiet)

    if args.copy:
        if controller.copy():
            _console_print("copied to clipboard", quiet=args.quiet)
        else:
            _console_print("nothing to copy", quiet=args.quiet)

    download = args.download
    if download is None:
        download = state.result.kind != MODALITY_TEXT
    if download:
        path = controller.download(Path(config.output_dir))
        if path is not None:
            _console_print(f"saved: {path}", quiet=args.quiet)

    if args.html:
        page = save_html(state.result, Path(args.html), title=handler.title)
        _console_print(f"html: {page}", quiet=args.quiet)


def _root_help_epilog() -> str:
    return dedent(
        """\
        Quick Examples:
          1) Show the catalog:
             market-suite tools
             market-suite tools --category "Visual & Imagem"
             market-suite tools --format json

          2) Inspect one tool:
             market-suite describe --tool notification-generator

          3) Generate a transaction notification:
             market-suite run --tool notification-generator
               --field customer="João" --field product="Tênis" --field value="199,90"

          4) Remove an image background:
             market-suite run --tool background-remover --image produto.png

          5) Point a tool at an external page:
             market-suite redirect set --tool watermark-remover --url https://example.com/
             market-suite redirect clear --tool watermark-remover

        Tips:
          - Set GEMINI_API_KEY in .env (or the environment) before running tools.
          - Use '--verbose' to print debug logs.
          - Use '--quiet' to suppress normal output.
          - Run 'market-suite <command> --help' for command-specific examples.
          - Run 'market-suite-tui' for the interactive catalog.
        """
    )


def _tools_help_epilog() -> str:
    return dedent(
        """\
        Examples:
          market-suite tools
          market-suite tools --category "Conteúdo & Copy"
          market-suite tools --format json

        Notes:
          - view=form tools run inline, view=redirect tools open a web page,
            view=placeholder tools are not available yet.
        """
    )


def _describe_help_epilog() -> str:
    return dedent(
        """\
        Examples:
          market-suite describe --tool marketing-content
          market-suite describe --tool ppc-ads --format json
        """
    )


def _run_help_epilog() -> str:
    return dedent(
        """\
        Examples:
          Text output:
            market-suite run --tool caption-generator
              --field description="Novo tênis de corrida na trilha" --field platform=Instagram

          Image input and output:
            market-suite run --tool visual-variations --image foto.png
              --field prompt="Mude a cor do carro para vermelho"

          Video mockup (polled, can take minutes):
            market-suite run --tool mockup-3d --image produto.png

          Field values from a file:
            market-suite run --tool notification-generator --fields-json campos.json --copy

        Notes:
          - Image and video results are saved under --output-dir by default.
          - Use '--download' to also save text results, '--no-download' to skip saving.
          - Use '--html PATH' to write a standalone HTML page of the result.
          - Polling stops after POLL_MAX_ATTEMPTS status checks (0 = no limit).
        """
    )


def _redirect_help_epilog() -> str:
    return dedent(
        """\
        Examples:
          market-suite redirect list
          market-suite redirect set --tool watermark-remover --url https://example.com/
          market-suite redirect clear --tool translator

        Notes:
          - Overrides are stored in MARKET_SUITE_REDIRECTS_PATH (default: ./tool_redirects.json).
          - A redirect takes precedence over an inline tool.
        """
    )


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    if quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _console_print(message: str, quiet: bool) -> None:
    if quiet:
        return
    print(message)


def _console_error(message: str) -> None:
    print(message, file=sys.stderr)


def _run_with_progress(action: str, quiet: bool, fn: Callable[[], T]) -> T:
    if quiet:
        return fn()

    state: Dict[str, object] = {"result": None, "error": None}

    def _target() -> None:
        try:
            state["result"] = fn()
        except Exception as exc:  # noqa: BLE001
            state["error"] = exc

    thread = threading.Thread(target=_target, daemon=True)
    thread.start()

    spinner = "|/-\\"
    spin_idx = 0
    started = time.monotonic()
    while thread.is_alive():
        elapsed = int(time.monotonic() - started)
        sys.stdout.write(f"\r[waiting {spinner[spin_idx % len(spinner)]}] {action} ... {elapsed}s")
        sys.stdout.flush()
        spin_idx += 1
        thread.join(0.2)

    # Clear spinner line.
    sys.stdout.write("\r" + (" " * 120) + "\r")
    sys.stdout.flush()

    error = state["error"]
    if error is not None:
        raise cast(Exception, error)

    elapsed = int(time.monotonic() - started)
    _console_print(f"done in {elapsed}s: {action}", quiet=False)
    return cast(T, state["result"])


if __name__ == "__main__":
    raise SystemExit(main())

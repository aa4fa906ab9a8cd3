"""Command-line interface for getmd."""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.progress import BarColumn, DownloadColumn, Progress, SpinnerColumn, TextColumn

from . import __version__
from .config_loader import load_config, load_config_from_file, merge_config_with_options
from .conversion.metadata import extract_metadata
from .core.converter import convert_to_markdown
from .http.client import fetch_url, is_valid_url
from .llm.manager import ModelManager, format_bytes
from .logging_config import cli_log_level, setup_logging
from .models.config import FetchOptions, resolve_options
from .models.events import EventType, RenderEvent

# Diagnostics go to stderr; stdout carries the markdown
console = Console(stderr=True)


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="getmd",
        description="Convert HTML to clean, LLM-ready Markdown",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Convert a file
  getmd page.html -o page.md

  # Fetch and convert a URL
  getmd https://example.com/article

  # Read HTML from stdin, without images and frontmatter
  curl -s https://example.com | getmd --no-images --no-frontmatter

  # Use the local model (falls back to rule-based conversion on failure)
  getmd --download-model
  getmd page.html --use-llm
        """,
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="HTML file, URL, or '-' for stdin (default: stdin)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--doctor",
        action="store_true",
        help="Run diagnostic checks",
    )

    parser.add_argument(
        "--output",
        "-o",
        type=Path,
        default=None,
        help="Output file (default: stdout)",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="FILE",
        help="Config file (default: .getmdrc / getmd.config.* in the working or home directory)",
    )

    # Conversion settings
    conversion_group = parser.add_argument_group("conversion settings")
    conversion_group.add_argument(
        "--no-extract",
        action="store_const",
        const=False,
        dest="extract_content",
        help="Disable main-content extraction",
    )
    conversion_group.add_argument(
        "--no-llm-optimize",
        action="store_const",
        const=False,
        dest="llm_optimized",
        help="Disable LLM-specific markdown formatting",
    )
    conversion_group.add_argument(
        "--frontmatter",
        action="store_const",
        const=True,
        dest="include_meta",
        help="Include metadata as frontmatter (default)",
    )
    conversion_group.add_argument(
        "--no-frontmatter",
        action="store_const",
        const=False,
        dest="include_meta",
        help="Omit the frontmatter block",
    )
    conversion_group.add_argument(
        "--no-images",
        action="store_const",
        const=False,
        dest="include_images",
        help="Remove images from output",
    )
    conversion_group.add_argument(
        "--no-links",
        action="store_const",
        const=False,
        dest="include_links",
        help="Remove links from output (text is kept)",
    )
    conversion_group.add_argument(
        "--no-tables",
        action="store_const",
        const=False,
        dest="include_tables",
        help="Remove tables from output",
    )
    conversion_group.add_argument(
        "--max-length",
        type=int,
        default=None,
        metavar="N",
        help="Maximum output length in characters (default: 1000000)",
    )
    conversion_group.add_argument(
        "--base-url",
        type=str,
        default=None,
        metavar="URL",
        help="Base URL for resolving relative links",
    )

    # Local model
    llm_group = parser.add_argument_group("local model")
    llm_group.add_argument(
        "--use-llm",
        action="store_const",
        const=True,
        dest="use_llm",
        help="Convert with the local ReaderLM-v2 model",
    )
    llm_group.add_argument(
        "--llm-model-path",
        type=Path,
        default=None,
        metavar="FILE",
        help="Model file (default: ~/.getmd/models/ReaderLM-v2-Q4_K_M.gguf)",
    )
    llm_group.add_argument(
        "--llm-temperature",
        type=float,
        default=None,
        help="Sampling temperature, 0-2 (default: 0)",
    )
    llm_group.add_argument(
        "--no-llm-fallback",
        action="store_const",
        const=False,
        dest="llm_fallback",
        help="Fail instead of falling back to rule-based conversion",
    )
    llm_group.add_argument(
        "--model-status",
        action="store_true",
        help="Show whether the model is downloaded",
    )
    llm_group.add_argument(
        "--download-model",
        action="store_true",
        help="Download the model",
    )
    llm_group.add_argument(
        "--remove-model",
        action="store_true",
        help="Delete the downloaded model",
    )

    # Metadata
    meta_group = parser.add_argument_group("metadata")
    meta_group.add_argument(
        "--meta",
        action="store_true",
        help="Print document metadata instead of markdown",
    )
    meta_group.add_argument(
        "--json",
        action="store_true",
        help="Print metadata as JSON (with --meta)",
    )

    # Output control
    output_group = parser.add_argument_group("output control")
    output_group.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Verbose output",
    )
    output_group.add_argument(
        "--quiet",
        "-q",
        action="store_true",
        help="Suppress output",
    )
    output_group.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Also write log messages to this file",
    )

    return parser


async def read_input(source: Optional[str]) -> tuple[str, Optional[str]]:
    """
    Read HTML from a URL, a file, or stdin.

    Returns:
        (html, url) where url is set only for URL input
    """
    if source and is_valid_url(source):
        return await fetch_url(source, FetchOptions()), source
    if source and source != "-":
        return Path(source).read_text(encoding="utf-8"), None
    if sys.stdin.isatty():
        raise ValueError("No input provided. Pass a file, a URL, or pipe HTML to stdin.")
    return sys.stdin.read(), None


def write_output(text: str, output: Optional[Path], quiet: bool) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    output.write_text(text, encoding="utf-8")
    if not quiet:
        console.print(f"[green]Written to {output}[/green]")


def conversion_options(args: argparse.Namespace) -> dict[str, Any]:
    """Options given on the command line; unset flags are None."""
    return {
        "extract_content": args.extract_content,
        "llm_optimized": args.llm_optimized,
        "include_meta": args.include_meta,
        "include_images": args.include_images,
        "include_links": args.include_links,
        "include_tables": args.include_tables,
        "max_length": args.max_length,
        "base_url": args.base_url,
        "use_llm": args.use_llm,
        "llm_model_path": args.llm_model_path,
        "llm_temperature": args.llm_temperature,
        "llm_fallback": args.llm_fallback,
    }


def describe_event(event: RenderEvent) -> Optional[str]:
    """One status line for the progress display, or None to leave it unchanged."""
    if event.type == EventType.MODEL_CHECK:
        return f"[cyan]Checking model ({event.status.value if event.status else ''})..."
    if event.type == EventType.MODEL_LOADING:
        return f"[cyan]Loading {event.model_name}..."
    if event.type == EventType.LLAMA_INIT_START:
        return "[cyan]Initializing llama.cpp..."
    if event.type == EventType.MODEL_FILE_LOADING:
        return f"[cyan]Reading {event.path}..."
    if event.type == EventType.MODEL_LOADED:
        return f"[green]Model loaded in {event.load_time_ms}ms"
    if event.type == EventType.CONVERSION_START:
        return f"[cyan]Converting {event.input_size} chars of HTML..."
    if event.type == EventType.CONVERSION_PROGRESS:
        return f"[cyan]Generated {event.tokens_processed} tokens..."
    if event.type == EventType.CONVERSION_COMPLETE:
        return f"[green]Converted in {event.duration_ms}ms"
    if event.type == EventType.FALLBACK_START:
        return f"[yellow]Model unavailable, using rule-based conversion ({event.reason})"
    return None


async def run_conversion(args: argparse.Namespace) -> int:
    config = load_config_from_file(args.config) if args.config else load_config()
    values = merge_config_with_options(config, conversion_options(args))

    html, url = await read_input(args.input)
    if url and not values.get("base_url"):
        values["base_url"] = url

    if args.meta:
        metadata = extract_metadata(html, values.get("base_url"))
        if args.json:
            text = json.dumps(metadata.to_dict(), indent=2, ensure_ascii=False) + "\n"
        else:
            text = "".join(f"{key}: {value}\n" for key, value in metadata.to_dict().items())
        write_output(text, args.output, args.quiet)
        return 0

    if not values.get("use_llm") or args.quiet:
        result = await convert_to_markdown(html, resolve_options(values))
    else:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Starting...", total=None)

            def on_event(event: RenderEvent) -> None:
                description = describe_event(event)
                if description:
                    progress.update(task, description=description)
                if event.type == EventType.FALLBACK_START:
                    console.print(description)

            result = await convert_to_markdown(html, resolve_options(values, on_event=on_event))

    write_output(result.markdown, args.output, args.quiet)

    if args.verbose and not args.quiet:
        stats = result.stats
        console.print(f"  Input: {stats.input_length} chars")
        console.print(f"  Output: {stats.output_length} chars")
        console.print(f"  Time: {stats.processing_time_ms}ms")
    return 0


async def run_model_command(args: argparse.Namespace) -> int:
    """Handle --model-status, --download-model and --remove-model."""
    manager = ModelManager(args.llm_model_path)

    if args.remove_model:
        await manager.remove_model()
        console.print(f"Removed {manager.model_path}")
        return 0

    if args.download_model:
        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            DownloadColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Downloading ReaderLM-v2...", total=None)
            path = await manager.download_model(
                on_progress=lambda downloaded, total: progress.update(task, completed=downloaded, total=total)
            )
        console.print(f"[green]Model ready at {path}[/green]")
        return 0

    status = await manager.check_model()
    if status.available:
        console.print(f"[green]Model available[/green] at {status.path} ({status.size_formatted})")
        return 0

    info = manager.get_model_info()
    console.print(f"[yellow]Model not found[/yellow] at {status.path}")
    console.print("Download it with: getmd --download-model")
    for variant in info.available_models:
        console.print(f"  {variant.name}: {format_bytes(variant.size)}, {variant.ram_required} RAM")
    return 1


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.doctor:
        from .doctor import run_doctor

        return run_doctor(model_path=args.llm_model_path)

    setup_logging(
        level=cli_log_level(args.verbose, args.quiet),
        log_file=args.log_file,
        force=True,
    )

    try:
        if args.model_status or args.download_model or args.remove_model:
            return asyncio.run(run_model_command(args))
        return asyncio.run(run_conversion(args))
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface for bytecoding code generation."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from bytecoding.generator import compile_schema, parse, python
from bytecoding.generator.parser import ValidationError
from bytecoding.generator.types import CompiledSchema


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Log resolution details")
def cli(verbose: bool) -> None:
    """Bytecoding schema compiler."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def _load(input_file: str) -> CompiledSchema:
    """Parse and resolve a schema file, exiting with a diagnostic on failure."""
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        return compile_schema(*parse(text))
    except ValidationError as exc:
        location = f"{exc.location}:" if exc.location else ""
        click.echo(f"{input_file}:{location} error: {exc.message}", err=True)
        sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--output", "-o", "output_file", required=True, help="Output file")
@click.option(
    "--runtime-import",
    "runtime_import",
    is_flag=False,
    flag_value="bytecoding.runtime",
    default=None,
    help="Import path for runtime. No value=bytecoding.runtime, omit=bytecoding_runtime",
)
def gen(input_file: str, output_file: str, runtime_import: str | None) -> None:
    """Generate Python codecs from a schema file."""
    schema = _load(input_file)

    # Default to "bytecoding_runtime" (copied next to the output) if not specified
    import_path = runtime_import if runtime_import is not None else "bytecoding_runtime"
    generated_file = python.render(schema, runtime_import=import_path)

    with open(output_file, "w", encoding="utf-8") as f:
        f.write(generated_file)


@cli.command()
@click.option("--output", "-o", "output_path", default=".", help="Output directory")
@click.option("--name", default="bytecoding_runtime", help="Runtime folder name")
def runtime(output_path: str, name: str) -> None:
    """Copy the runtime package next to generated code."""
    runtime_dir = Path(output_path) / name
    runtime_dir.mkdir(parents=True, exist_ok=True)
    for filename, content in python.runtime().items():
        (runtime_dir / filename).write_text(content)
    print(f"Generated Python runtime in {runtime_dir}")


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input schema file")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def info(input_file: str, output_json: bool) -> None:
    """Display resolved field orders and union tags."""
    schema = _load(input_file)

    if output_json:
        print(json.dumps(schema.to_dict(), indent=2))
    else:
        _output_plain(schema)


def _output_plain(schema: CompiledSchema) -> None:
    """Output schema info using rich text formatting."""
    console = Console()

    if schema.records:
        console.print("[bold cyan]Structs[/bold cyan]")
        for record in schema.records:
            table = Table(title=record.name, title_justify="left", box=None, padding=(0, 2, 0, 0))
            table.add_column("#", style="dim", justify="right")
            table.add_column("Field", style="white")
            table.add_column("Type", style="yellow")
            table.add_column("Order No", style="green", justify="right")
            table.add_column("Wire", style="dim")

            for position, f in enumerate(record.order):
                order_no = f.attributes.order_no
                table.add_row(
                    str(position),
                    f.field.ident,
                    str(f.field.type),
                    "" if order_no is None else str(order_no),
                    "ignored" if f.attributes.ignore else "",
                )

            console.print(table)
        console.print()

    if schema.unions:
        console.print("[bold cyan]Unions[/bold cyan]")
        for union in schema.unions:
            table = Table(
                title=f"{union.name} ({union.encoding_type.value} tag)",
                title_justify="left",
                box=None,
                padding=(0, 2, 0, 0),
            )
            table.add_column("Variant", style="white")
            table.add_column("Tag", style="green", justify="right")
            table.add_column("Fields", style="yellow")

            for variant in union.variants:
                fields = ", ".join(
                    f"{f.ident}: {f.type}" if f.name else str(f.type)
                    for f in variant.variant.fields
                )
                table.add_row(variant.name, str(variant.tag), fields)

            console.print(table)
        console.print()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()

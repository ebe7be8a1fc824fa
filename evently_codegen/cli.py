"""
Command line entry point.

    evently_codegen INPUT OUTPUT_DIR [--name NAME] [--config FILE] [--strict]
                    [--base-uri URI] [--force] [--verbose]

Exit codes: 0 success, 1 unexpected error, 2 configuration error,
3 parse error, 4 generation error, 5 invalid document, 6 file error.
"""

import json
import logging
import sys
from pathlib import Path

import click

from .cli_utils import reconstruct_command_line
from .config import CodeGeneratorConfig
from .envelope import load_schema_document
from .errors import (
    FileError,
    ParseError,
    ResolverError,
    SchemaValidationError,
    UnsupportedVersionError,
)
from .file_io import AtomicWriter
from .resolver import SchemaResolver
from .synthesizer import CodeSynthesizer

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_GENERAL_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_PARSE_ERROR = 3
EXIT_GENERATION_ERROR = 4
EXIT_VALIDATION_ERROR = 5
EXIT_FILE_ERROR = 6


def load_config(path: str | None) -> CodeGeneratorConfig:
    """
    Load a JSON configuration file (defaults when path is None).

    Raises:
        SchemaValidationError: If the file is not a JSON object
    """
    if path is None:
        return CodeGeneratorConfig()
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise SchemaValidationError("config", f"cannot read configuration file '{path}': {e}") from e
    if not isinstance(data, dict):
        raise SchemaValidationError("config", "configuration file must contain a JSON object")
    return CodeGeneratorConfig.from_dict(data)


def _fail(code: int, message: str, error: Exception | None = None):
    click.echo(f"Error: {message}", err=True)
    if error is not None:
        click.echo(f"Details: {error}", err=True)
    sys.exit(code)


@click.command()
@click.option("--name", "-n", default=None, type=str, help="Root type name for a document that is a single schema")
@click.option("--config", "-c", default=None, type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.option("--strict", is_flag=True, default=False, help="Reject undeclared properties in the generated validators")
@click.option("--base-uri", default=None, type=str, help="URI the input document is known under for $ref resolution")
@click.option("--force", "-f", is_flag=True, default=False, help="Overwrite existing output files")
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("path", type=click.Path(exists=True, dir_okay=False, resolve_path=True))
@click.argument("output", type=click.Path(file_okay=False, resolve_path=True))
def evently_codegen(name, config, strict, base_uri, force, verbose, path, output):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        gen_config = load_config(config)
    except SchemaValidationError as e:
        _fail(EXIT_CONFIG_ERROR, "Configuration validation failed", e)

    # CLI flags override the config file
    if strict:
        gen_config.strict_validation = True
    if base_uri:
        gen_config.resolver.base_uri = base_uri

    logger.info(f"Input file: {path}")
    logger.info(f"Output directory: {output}")

    resolver = SchemaResolver.from_config(gen_config.resolver)
    try:
        document = load_schema_document(path, resolver, name=name or "", uri=gen_config.resolver.base_uri)
    except (ParseError, ResolverError) as e:
        _fail(EXIT_PARSE_ERROR, "Failed to parse input document", e)
    except (SchemaValidationError, UnsupportedVersionError) as e:
        _fail(EXIT_VALIDATION_ERROR, "Input document is not valid", e)
    except FileError as e:
        _fail(EXIT_FILE_ERROR, "Failed to read input document", e)

    if not document.schemas:
        _fail(EXIT_GENERATION_ERROR, f"No schemas found in {Path(path).name}")

    synthesizer = CodeSynthesizer(gen_config, resolver, command_line=reconstruct_command_line(evently_codegen))
    result = synthesizer.generate_types(document.schemas)

    try:
        written = AtomicWriter(force=force).write_files(Path(output), result.files)
    except FileError as e:
        _fail(EXIT_FILE_ERROR, "Failed to write generated files", e)

    for written_path in written:
        logger.info(f"Wrote {written_path}")

    if not result.ok:
        for error in result.errors:
            click.echo(f"Error: {error}", err=True)
        _fail(EXIT_GENERATION_ERROR, f"Code generation failed for {len(result.errors)} schema(s)")

    click.echo(f"Generated {len(written)} file(s) in {output}")


if __name__ == "__main__":
    evently_codegen()

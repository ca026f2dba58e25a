#!/usr/bin/env python3
"""CLI entry point for the story grammar generator."""

import json
import logging
import sys
from datetime import datetime
from pathlib import Path

import click

from errors import GrammarError
from grammar_runner import GrammarFileError, build_parser, parse_grammar, run_grammar


def _load_grammar(grammar_path: Path) -> dict[str, list[str]]:
    try:
        return parse_grammar(grammar_path.read_text())
    except GrammarFileError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _format_complexity(value) -> str:
    return "infinite" if value == float("inf") else str(value)


@click.command()
@click.option(
    '-g', '--grammar',
    'grammar_path',
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='JSON grammar file mapping rule names to lists of values'
)
@click.option(
    '-n', '--count',
    default=10,
    type=click.IntRange(min=1),
    help='Number of texts to generate (default: 10)'
)
@click.option(
    '--origin',
    default='origin',
    help='Rule to start expansion from (default: origin)'
)
@click.option(
    '--seed',
    type=int,
    default=None,
    help='Random seed for reproducible output (variation i uses seed + i)'
)
@click.option(
    '--max-depth',
    type=click.IntRange(min=1),
    default=None,
    help='Maximum expansion depth (default: 100)'
)
@click.option(
    '--no-english',
    is_flag=True,
    help='Do not apply the English post-processing modifiers'
)
@click.option(
    '--validate',
    is_flag=True,
    help='Validate the grammar and exit'
)
@click.option(
    '--complexity',
    is_flag=False,
    flag_value='',
    default=None,
    metavar='[RULE]',
    help='Print the number of possible outcomes of RULE (or of every rule) and exit'
)
@click.option(
    '--probabilities',
    default=None,
    metavar='RULE',
    help='Print the outcome distribution of RULE and exit'
)
@click.option(
    '-o', '--output',
    type=click.Path(file_okay=False, path_type=Path),
    help='Write each text to OUTPUT/{prefix}_{i}.txt plus a metadata file'
)
@click.option(
    '--prefix',
    default='text',
    help='Prefix for output files (default: "text")'
)
@click.option(
    '-v', '--verbose',
    is_flag=True,
    help='Enable debug logging'
)
def main(
    grammar_path: Path,
    count: int,
    origin: str,
    seed: int | None,
    max_depth: int | None,
    no_english: bool,
    validate: bool,
    complexity: str | None,
    probabilities: str | None,
    output: Path | None,
    prefix: str,
    verbose: bool,
):
    """
    Generate text variations from a story grammar.

    Example:
        python cli.py -g story.json -n 5
        python cli.py -g story.json --seed 42 -o generated/story

    Analysis:
        python cli.py -g story.json --validate
        python cli.py -g story.json --complexity origin
        python cli.py -g story.json --probabilities character
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    # Analysis modes
    if validate or complexity is not None or probabilities is not None:
        grammar = _load_grammar(grammar_path)
        parser = build_parser(grammar, english=False)

        if validate:
            click.echo(parser.validator.summary())
            if not parser.validate().is_valid:
                sys.exit(1)
            return

        if complexity is not None:
            try:
                if complexity:
                    result = parser.calculate_rule_complexity(complexity)
                    click.echo(f"{result.rule_name} ({result.rule_type}): {_format_complexity(result.complexity)}")
                    warnings = result.warnings
                else:
                    total = parser.calculate_total_complexity()
                    for rule in total.complexity_by_rule:
                        click.echo(f"{rule.rule_name} ({rule.rule_type}): {_format_complexity(rule.complexity)}")
                    click.echo(f"Total: {_format_complexity(total.total_complexity)}")
                    warnings = total.warnings
            except GrammarError as e:
                click.echo(f"Error: {e}", err=True)
                sys.exit(1)
            for warning in warnings:
                click.echo(f"Warning: {warning}", err=True)
            return

        try:
            analysis = parser.calculate_probabilities(probabilities)
        except GrammarError as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"{analysis.total_outcomes} outcomes, entropy {analysis.entropy:.4f} bits")
        for outcome in analysis.most_probable:
            click.echo(f"{outcome.probability:.4f}  {outcome.outcome}")
        for warning in analysis.warnings:
            click.echo(f"Warning: {warning}", err=True)
        return

    # Generation mode
    try:
        outputs = run_grammar(
            grammar_path.read_text(),
            count=count,
            origin=origin,
            seed=seed,
            english=not no_english,
            max_depth=max_depth,
        )
    except (GrammarFileError, GrammarError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if output is None:
        for text in outputs:
            click.echo(text)
        return

    output.mkdir(parents=True, exist_ok=True)
    for i, text in enumerate(outputs):
        (output / f"{prefix}_{i}.txt").write_text(text)

    metadata = {
        "grammar_path": str(grammar_path),
        "origin": origin,
        "count": len(outputs),
        "seed": seed,
        "english_modifiers": not no_english,
        "created_at": datetime.now().isoformat(),
        "prefix": prefix,
    }
    (output / f"{prefix}_metadata.json").write_text(json.dumps(metadata, indent=2))

    click.echo(f"Generated {len(outputs)} texts in: {output}")

    # Show a sample
    if outputs:
        click.echo("\n--- Sample Output ---")
        click.echo(outputs[0])
        click.echo("--- End Sample ---")


if __name__ == "__main__":
    main()

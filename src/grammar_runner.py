"""Load JSON grammar files and generate text from them."""

import json
import logging

from grammar_parser import Parser
from tokens import token

logger = logging.getLogger(__name__)


class GrammarFileError(Exception):
    """Raised when a grammar file cannot be loaded."""
    pass


def parse_grammar(grammar_json: str) -> dict[str, list[str]]:
    """
    Parse a JSON grammar string into a dictionary.

    A grammar is an object mapping rule names to lists of strings. A bare
    string value is accepted as a one-element list.

    Args:
        grammar_json: JSON string containing the grammar

    Returns:
        Parsed grammar dictionary

    Raises:
        GrammarFileError: If JSON is invalid or not shaped like a grammar
    """
    try:
        data = json.loads(grammar_json)
    except json.JSONDecodeError as e:
        raise GrammarFileError(f"Invalid JSON grammar: {e}")

    if not isinstance(data, dict):
        raise GrammarFileError("Grammar must be a JSON object mapping rule names to values")

    grammar = {}
    for name, values in data.items():
        if isinstance(values, str):
            values = [values]
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            raise GrammarFileError(f"Rule '{name}' must be a string or a list of strings")
        grammar[name] = values
    return grammar


def build_parser(grammar: dict[str, list[str]], english: bool = True, seed: int | None = None) -> Parser:
    """
    Create a Parser loaded with a static grammar.

    Args:
        grammar: Rule name -> values
        english: Load the default English modifiers
        seed: Optional random seed for reproducible output

    Returns:
        Configured Parser
    """
    parser = Parser()
    parser.add_rules(grammar)
    if english:
        parser.use_english_modifiers()
    if seed is not None:
        parser.set_random_seed(seed)
    return parser


def generate_one(grammar: dict[str, list[str]], origin: str = "origin") -> str:
    """
    Generate a single text from a grammar.

    Args:
        grammar: Grammar as a dictionary
        origin: The starting rule (default: "origin")

    Returns:
        Generated text
    """
    return build_parser(grammar).parse(token(origin))


def run_grammar(
    grammar_json: str,
    count: int = 500,
    origin: str = "origin",
    seed: int | None = None,
    english: bool = True,
    max_depth: int | None = None,
) -> list[str]:
    """
    Generate multiple texts from a JSON grammar.

    Args:
        grammar_json: JSON string containing the grammar
        count: Number of variations to generate
        origin: The starting rule (default: "origin")
        seed: Base seed; variation i uses seed + i
        english: Load the default English modifiers
        max_depth: Override the expansion depth limit

    Returns:
        List of generated texts

    Raises:
        GrammarFileError: If the grammar is invalid
        GrammarError: If expansion fails (e.g. runaway recursion)
    """
    grammar = parse_grammar(grammar_json)
    parser = build_parser(grammar, english=english)
    if max_depth is not None:
        parser.set_max_depth(max_depth)

    if origin not in grammar:
        logger.warning(f"Origin rule '{origin}' is not defined in the grammar")

    if count < 1:
        return []
    return parser.generate_variations(token(origin), count, seed=seed)
